from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .commands import execute_portown, execute_tree
from .config import BACKENDS, REMOTE_ALIASES, SORT_ALIASES, init_tree_cfg_from_args, load_portown_config
from .errors import ExitCode, ToolboxerError


def _non_negative(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {n}")
    return n


def _port(value: str) -> int:
    n = _non_negative(value)
    if n > 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='toolboxer', description='Local diagnostic toolkit')
    ap.add_argument('-v', '--verbose', action='store_true', help='debug logging on stderr')
    ap.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    sub = ap.add_subparsers(dest='command', required=True, metavar='COMMAND')

    tp = sub.add_parser('tree', help='display directory structure as a tree')
    tp.add_argument('path', nargs='?', default='.', help='root directory (default: .)')
    tp.add_argument('-d', '--depth', type=_non_negative, default=None, help='maximum depth to display')
    tp.add_argument('-a', '--all', action='store_true', help='include hidden files')
    sort = tp.add_mutually_exclusive_group()
    sort.add_argument('-t', '--sort-type', action='store_true', help='sort by type (directories first)')
    sort.add_argument('-s', '--sort-size', action='store_true', help='sort by size, largest first')
    sort.add_argument('-D', '--sort-date', action='store_true', help='sort by modification time, newest first')
    tp.add_argument('-p', '--permissions', action='store_true', help='show permissions')
    tp.add_argument('-S', '--human-size', action='store_true', help='show human-readable sizes')
    tp.add_argument('-m', '--modified', action='store_true', help='show last modification time')
    tp.add_argument('-f', '--filter', type=str, default=None, help='glob pattern for file names (e.g. "*.py")')
    tp.add_argument('--dirs-only', action='store_true', help='only show directories')

    pp = sub.add_parser('portown', help='show which processes own which ports')
    proto = pp.add_mutually_exclusive_group()
    proto.add_argument('--tcp-only', action='store_true', help='only TCP sockets')
    proto.add_argument('--udp-only', action='store_true', help='only UDP sockets')
    state = pp.add_mutually_exclusive_group()
    state.add_argument('-l', '--listen', action='store_true', help='only listening sockets (and unconnected UDP)')
    state.add_argument('-e', '--established-only', action='store_true', help='only established connections')
    pp.add_argument('-d', '--depth', type=_non_negative, default=None, help='process ancestry levels to show')
    pp.add_argument('--sort', choices=sorted(SORT_ALIASES), default=None, help='group order (default: port)')
    pp.add_argument('--remote', choices=sorted(REMOTE_ALIASES), default=None,
                    help='remote endpoints: show, redact non-loopback addresses, or hide')
    pp.add_argument('--backend', choices=BACKENDS, default=None, help='socket source (default: auto)')
    pp.add_argument('--timeout', type=float, default=None, help='seconds allowed for host queries')
    pp.add_argument('--json', action='store_true', help='JSON output')
    pp.add_argument('--config', type=str, default=None, help='YAML/JSON file with portown defaults')
    target = pp.add_mutually_exclusive_group()
    target.add_argument('-P', '--port', type=_port, default=None, help='only this local port / kill target')
    target.add_argument('-p', '--pid', type=_non_negative, default=None, help='only this PID / kill target')
    pp.add_argument('-k', '--kill', action='store_true', help='terminate the process selected by --port/--pid')
    pp.add_argument('--force', action='store_true', help='with --kill: kill immediately instead of a graceful request')
    return ap


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )


def run(args) -> int:
    if args.command == 'tree':
        sys.stdout.write(execute_tree(init_tree_cfg_from_args(args)))
        return int(ExitCode.OK)
    cfg = load_portown_config(args)
    return execute_portown(cfg, port=args.port, pid=args.pid, kill=args.kill, force=args.force)


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.command == 'portown' and args.force and not args.kill:
        ap.error('--force requires --kill')
    setup_logging(args.verbose)
    try:
        return int(run(args))
    except ToolboxerError as e:
        print(f"toolboxer: error: {e}", file=sys.stderr)
        return int(e.exit_code)
    except KeyboardInterrupt:
        print("toolboxer: interrupted", file=sys.stderr)
        return int(ExitCode.INTERRUPTED)


if __name__ == '__main__':
    sys.exit(main())
