"""Small helpers shared by the transpile modules."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from orbita.drivers.spec import ParameterSpec
from orbita.graph import Graph
from orbita.transpile._constants import (
    _DIGEST_LEN,
    _ID_SAFE_CHARS,
    _SYMBOL_PREFIX,
)


def _indent_body(lines: list[str], spaces: int) -> list[str]:
    prefix = " " * spaces
    return [f"{prefix}{line}" if line else line for line in lines]


def _escape_id(node_id: str) -> str:
    out = []
    for ch in node_id:
        if ch in _ID_SAFE_CHARS:
            out.append(ch)
        elif ch == "_":
            out.append("_u")
        else:
            out.append(f"_x{ord(ch):06x}")
    return "".join(out)


def _node_symbol(node_id: str) -> str:
    """Symbol prefix for *node_id*, derived from the id alone.

    Letters and digits pass through, ``_`` becomes ``_u`` and anything else
    becomes ``_x`` plus six hex digits, so every ``_`` inside the escaped id
    is followed by a letter.  The prefix ends in a single ``_``; a template
    name ``{{var_name}}_<suffix>`` therefore reads ``n_<escaped>__<suffix>``
    and the first ``__`` marks where the id ends.  No two (id, suffix) pairs
    produce the same name.
    """
    return f"{_SYMBOL_PREFIX}{_escape_id(node_id)}_"


def _literal(value: Any, spec: ParameterSpec | None = None) -> str:
    """Source text for a parameter value."""
    if spec is not None and spec.raw:
        return str(value)
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, str):
        return repr(value)
    raise TypeError(f"Unsupported parameter value: {type(value).__name__}")


def _is_blank(fragment: str) -> bool:
    return not fragment.strip()


def _graph_digest(graph: Graph) -> str:
    """Short stable digest of everything in *graph* that affects the program."""
    payload = {
        "nodes": [
            {
                "id": node.id,
                "driver": node.driver_id,
                "parameters": dict(node.parameters),
                "actions": [[a.action_id, dict(a.config)] for a in node.actions],
                "rules": [
                    [r.source_id, r.source_port, r.operator.value, r.value, r.action.value]
                    for r in node.logic_rules
                ],
            }
            for node in graph.nodes
        ],
        "edges": [
            [e.id, e.source, e.source_port, e.target, e.target_port] for e in graph.edges
        ],
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:_DIGEST_LEN]
