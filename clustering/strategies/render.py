"""Text escaping for dot graphs and Newick trees."""
from __future__ import annotations

import re

from clustering.corpus import Type

_NEWICK_RESERVED = re.compile(r"[\s(),:;\[\]']")


def dot_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dot_node_id(t: Type) -> str:
    # quoted so negative ids stay valid identifiers
    return dot_quote(f"t{t.type_id}")


def newick_label(t: Type) -> str:
    return _NEWICK_RESERVED.sub("_", t.label)
