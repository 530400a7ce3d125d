from __future__ import annotations
from typing import Any, Dict, List, Sequence

import orjson

from ..models import AncestryChain, OwnedSocket, ProcessRecord
from .pipeline import FilterOptions, Group, group_by_owner, select, shown_remote


def _proc_dict(p: ProcessRecord) -> Dict[str, Any]:
    return {"pid": p.pid, "name": p.name, "ppid": p.ppid, "exe": p.exe, "user": p.username}


def _chain_dict(chain: AncestryChain, depth: int) -> Dict[str, Any]:
    records = chain.records[:depth]
    return {
        "chain": [{"pid": r.pid, "name": r.name} for r in records],
        "truncated": chain.truncated or len(records) < len(chain.records),
        "cycle_pid": chain.cycle_pid,
        "missing_parent": chain.missing_parent,
    }


def _socket_dict(o: OwnedSocket, options: FilterOptions) -> Dict[str, Any]:
    s = o.socket
    d: Dict[str, Any] = {
        "protocol": s.protocol.value,
        "family": s.family.value,
        "local": {"address": s.laddr, "port": s.lport},
        "state": s.state.value,
        "pid": s.pid,
        "resolution": o.resolution.value,
    }
    if options.remote != "hide":
        rhost, rport = shown_remote(o, options.remote)
        d["remote"] = {"address": rhost, "port": rport} if rhost else None
    return d


def _group_dict(g: Group, options: FilterOptions) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "title": g.title,
        "owner": _proc_dict(g.owner) if g.owner else None,
        "sockets": [_socket_dict(o, options) for o in g.sockets],
    }
    if g.owner is not None:
        d["ancestry"] = _chain_dict(g.sockets[0].ancestry, options.depth)
    return d


def render_json(owned: Sequence[OwnedSocket], options: FilterOptions) -> str:
    chosen = select(owned, options)
    groups: List[Dict[str, Any]] = [_group_dict(g, options) for g in group_by_owner(chosen, options.sort)]
    payload = {
        "groups": groups,
        "socket_count": len(chosen),
        "options": {
            "protocol": options.protocol,
            "state_filter": options.state_filter,
            "depth": options.depth,
            "sort": options.sort,
            "remote": options.remote,
        },
    }
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode() + "\n"
