from __future__ import annotations
from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    ERROR = 1
    USAGE = 2
    PERMISSION_DENIED = 3
    PLATFORM_UNSUPPORTED = 4
    # listing was produced, termination failed
    KILL_NOT_FOUND = 5
    KILL_PROTECTED = 6
    KILL_DENIED = 7
    INTERRUPTED = 130


class ToolboxerError(Exception):
    """Base for every error the CLI reports as a one-line cause."""
    exit_code: int = ExitCode.ERROR


class UsageError(ToolboxerError):
    exit_code = ExitCode.USAGE


class PermissionDenied(ToolboxerError):
    exit_code = ExitCode.PERMISSION_DENIED


class TerminationDenied(PermissionDenied):
    exit_code = ExitCode.KILL_DENIED


class PlatformUnsupported(ToolboxerError):
    exit_code = ExitCode.PLATFORM_UNSUPPORTED


class QueryTimeout(PlatformUnsupported):
    pass


class NotFound(ToolboxerError):
    exit_code = ExitCode.KILL_NOT_FOUND


class ProtectedProcess(ToolboxerError):
    exit_code = ExitCode.KILL_PROTECTED
