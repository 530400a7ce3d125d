"""Correlation and ancestry walks over hand-built snapshots."""
from toolboxer.models import ProcessDirectory, ProcessRecord, Resolution
from toolboxer.ownership import attach_ancestry, build_ancestry, correlate, walk_ancestry

from conftest import tcp, udp


def directory(*records):
    return ProcessDirectory(records)


class TestCorrelate:
    def test_attaches_matching_process(self):
        svc = ProcessRecord(pid=2, name="svc", ppid=1)
        d = directory(ProcessRecord(pid=1, name="root"), svc)
        [owned] = correlate([tcp(8080, pid=2)], d)
        assert owned.resolution is Resolution.RESOLVED
        assert owned.owner is svc

    def test_pid_missing_from_directory_is_kept(self):
        [owned] = correlate([tcp(9000, pid=9999)], directory())
        assert owned.resolution is Resolution.PID_ONLY
        assert owned.owner is None
        assert owned.pid == 9999

    def test_absent_pid_is_unknown(self):
        [owned] = correlate([udp(68)], directory())
        assert owned.resolution is Resolution.UNKNOWN
        assert owned.pid is None

    def test_never_drops_and_keeps_order(self):
        socks = [tcp(1, pid=5), udp(2), tcp(3, pid=7), tcp(4, pid=5)]
        d = directory(ProcessRecord(pid=5, name="a"))
        owned = correlate(socks, d)
        assert [o.socket for o in owned] == socks
        assert [o.resolution for o in owned] == [
            Resolution.RESOLVED, Resolution.UNKNOWN, Resolution.PID_ONLY, Resolution.RESOLVED]


class TestAncestry:
    def test_chain_up_to_root(self):
        d = directory(ProcessRecord(pid=1, name="root"), ProcessRecord(pid=2, name="svc", ppid=1))
        assert [r.pid for r in build_ancestry(2, d, 5)] == [2, 1]

    def test_self_parent_is_cycle_of_one(self):
        d = directory(ProcessRecord(pid=7, name="odd", ppid=7))
        chain = walk_ancestry(7, d, 5)
        assert chain.pids == (7,)
        assert chain.cycle_pid == 7

    def test_cycle_stops_without_repeat(self):
        d = directory(
            ProcessRecord(pid=10, name="a", ppid=11),
            ProcessRecord(pid=11, name="b", ppid=12),
            ProcessRecord(pid=12, name="c", ppid=10),
        )
        chain = walk_ancestry(10, d, 50)
        assert chain.pids == (10, 11, 12)
        assert chain.cycle_pid == 10
        assert not chain.truncated

    def test_truncated_not_fabricated(self):
        d = directory(*[ProcessRecord(pid=i, name=f"p{i}", ppid=i - 1 if i > 1 else None)
                        for i in range(1, 21)])
        chain = walk_ancestry(20, d, 3)
        assert chain.pids == (20, 19, 18)
        assert chain.truncated
        assert chain.cycle_pid is None

    def test_length_never_exceeds_depth(self):
        d = directory(*[ProcessRecord(pid=i, name=f"p{i}", ppid=i - 1 if i > 1 else None)
                        for i in range(1, 11)])
        for depth in range(0, 15):
            chain = walk_ancestry(10, d, depth)
            assert len(chain) <= depth
            assert len(set(chain.pids)) == len(chain.pids)

    def test_depth_zero_is_empty(self):
        d = directory(ProcessRecord(pid=1, name="root"))
        assert build_ancestry(1, d, 0) == ()

    def test_missing_parent_recorded(self):
        d = directory(ProcessRecord(pid=30, name="orphan", ppid=29))
        chain = walk_ancestry(30, d, 5)
        assert chain.pids == (30,)
        assert chain.missing_parent == 29

    def test_unknown_owner_gives_empty_chain(self):
        assert walk_ancestry(404, directory(), 5).records == ()

    def test_attach_only_touches_resolved(self):
        d = directory(ProcessRecord(pid=1, name="root"), ProcessRecord(pid=2, name="svc", ppid=1))
        owned = correlate([tcp(8080, pid=2), tcp(9000, pid=9999), udp(68)], d)
        with_chains = attach_ancestry(owned, d, 5)
        assert with_chains[0].ancestry.pids == (2, 1)
        assert with_chains[1].ancestry.records == ()
        assert with_chains[2] is owned[2]
        # originals untouched
        assert owned[0].ancestry.records == ()
