import pytest

from toolboxer.collectors.base import Collector, protocols_for
from toolboxer.config import PortownConfig
from toolboxer.errors import PermissionDenied
from toolboxer.models import ProcessDirectory, ProcessRecord, Protocol, SocketRecord, SocketState


class FakeCollector(Collector):
    """Serves a fixed snapshot instead of querying the host."""

    name = "fake"

    def __init__(self, sockets=(), processes=(), deny_sockets=False):
        super().__init__(timeout=1.0)
        self.sockets = list(sockets)
        self.processes = list(processes)
        self.deny_sockets = deny_sockets

    def enumerate_sockets(self, protocol_filter="both"):
        if self.deny_sockets:
            raise PermissionDenied("socket enumeration refused")
        wanted = protocols_for(protocol_filter)
        return [s for s in self.sockets if s.protocol in wanted]

    def build_process_directory(self):
        return ProcessDirectory(self.processes)


def tcp(port, state=SocketState.LISTEN, pid=None, laddr="0.0.0.0", raddr=None, rport=None):
    return SocketRecord(protocol=Protocol.TCP, laddr=laddr, lport=port, raddr=raddr,
                        rport=rport, state=state, pid=pid)


def udp(port, pid=None, laddr="0.0.0.0", raddr=None, rport=None):
    return SocketRecord(protocol=Protocol.UDP, laddr=laddr, lport=port, raddr=raddr,
                        rport=rport, state=SocketState.NONE, pid=pid)


@pytest.fixture
def svc_host():
    """root(1) -> svc(2) listening on 8080."""
    procs = [ProcessRecord(pid=1, name="root"), ProcessRecord(pid=2, name="svc", ppid=1)]
    socks = [tcp(8080, pid=2)]
    return FakeCollector(socks, procs)


@pytest.fixture
def cfg():
    return PortownConfig()
