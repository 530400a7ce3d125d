from __future__ import annotations
from typing import List, Sequence

from ..models import AncestryChain, OwnedSocket, Resolution
from ..utils.net import format_endpoint
from .pipeline import FilterOptions, Group, group_by_owner, select, shown_remote

BRANCH = "├─ "
LAST = "└─ "
NO_MATCH = "No matching sockets."


def format_chain(chain: AncestryChain, depth: int) -> str:
    """svc(2) <- root(1), with a marker when the walk stopped early."""
    records = chain.records[:depth]
    parts = [r.label for r in records]
    if len(records) < len(chain.records) or chain.truncated:
        parts.append("...")
    elif chain.cycle_pid is not None:
        parts.append(f"[cycle: PID {chain.cycle_pid}]")
    elif chain.missing_parent is not None:
        parts.append(f"?({chain.missing_parent}, unresolved)")
    return " <- ".join(parts)


def _owner_note(o: OwnedSocket) -> str:
    if o.resolution is Resolution.PID_ONLY:
        return f"PID {o.pid} (not in process table)"
    if o.resolution is Resolution.UNKNOWN:
        return "PID ?"
    return ""


def _socket_columns(o: OwnedSocket, options: FilterOptions) -> List[str]:
    s = o.socket
    cols = [s.protocol.value, format_endpoint(s.laddr, s.lport)]
    if options.remote != "hide":
        rhost, rport = shown_remote(o, options.remote)
        cols.append(format_endpoint(rhost, rport))
    cols.append(s.state.value)
    note = _owner_note(o)
    if note:
        cols.append(note)
    return cols


def _align(rows: List[List[str]]) -> List[str]:
    if not rows:
        return []
    widths: List[int] = []
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            if i >= len(widths):
                widths.append(0)
            widths[i] = max(widths[i], len(cell))
    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])] + [row[-1]]
        lines.append("  ".join(cells).rstrip())
    return lines


def _render_group(g: Group, options: FilterOptions, lines: List[str]) -> List[str]:
    header = g.title
    if g.owner is not None and g.owner.exe:
        header += f" {g.owner.exe}"
    out = [header]
    entries = list(lines)
    if g.owner is not None and options.depth > 0:
        chain = g.sockets[0].ancestry
        if chain.records:
            entries.append("ancestry: " + format_chain(chain, options.depth))
    for i, entry in enumerate(entries):
        out.append((LAST if i == len(entries) - 1 else BRANCH) + entry)
    return out


def render(owned: Sequence[OwnedSocket], options: FilterOptions) -> str:
    """Deterministic text view: one block per owning process, unresolved last."""
    chosen = select(owned, options)
    if not chosen:
        return NO_MATCH + "\n"
    groups = group_by_owner(chosen, options.sort)

    # align socket columns across the whole report
    rows = [_socket_columns(o, options) for g in groups for o in g.sockets]
    aligned = iter(_align(rows))

    blocks: List[str] = []
    for g in groups:
        lines = [next(aligned) for _ in g.sockets]
        blocks.append("\n".join(_render_group(g, options, lines)))

    resolved = sum(1 for g in groups if g.owner is not None)
    unresolved = sum(len(g.sockets) for g in groups if g.owner is None)
    summary = (f"{len(chosen)} socket{'s' if len(chosen) != 1 else ''}, "
               f"{resolved} process{'es' if resolved != 1 else ''}")
    if unresolved:
        summary += f", {unresolved} with unresolved owner"
    return "\n\n".join(blocks) + "\n\n" + summary + "\n"
