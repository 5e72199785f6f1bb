"""Corpus transfer record and its JSON byte codec.

Wire format (UTF-8 encoded JSON)::

    {
      "numberOfNodes": 3,
      "numberOfTypes": 2,
      "nodes": [{"number": 2, "label": "ab", "frequencies": {"0": 1}}, ...],
      "types": [{"id": 0, "name": "doc-a", "vector": [1.0, 0.0, 2.0]}, ...]
    }
"""
from __future__ import annotations

import json
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from clustering.corpus import Corpus, Node, Type
from workflow.errors import DeserializationError


@dataclass
class CorpusTransfer:
    number_of_nodes: int
    number_of_types: int
    nodes: List[Node] = field(default_factory=list)
    types: List[Type] = field(default_factory=list)

    @classmethod
    def from_corpus(cls, corpus: Corpus) -> "CorpusTransfer":
        return cls(
            number_of_nodes=corpus.number_of_nodes,
            number_of_types=corpus.number_of_types,
            nodes=[node for node in corpus.nodes if node is not None],
            types=corpus.sorted_types(),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "numberOfNodes": self.number_of_nodes,
            "numberOfTypes": self.number_of_types,
            "nodes": [
                {
                    "number": node.node_number,
                    "label": node.label,
                    "frequencies": {str(k): v for k, v in sorted(node.type_frequencies.items())},
                }
                for node in self.nodes
            ],
            "types": [
                {"id": t.type_id, "name": t.name, "vector": list(t.vector)}
                for t in sorted(self.types)
            ],
        }


def serialize(transfer: CorpusTransfer) -> bytes:
    return json.dumps(transfer.to_payload(), ensure_ascii=False).encode("utf-8")


def _count(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DeserializationError(f"Expected a non-negative integer, got {value!r}", field=key)
    return value


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DeserializationError(f"Expected an integer, got {value!r}", field=field_name)
    return value


def _list(payload: Mapping[str, Any], key: str) -> List[Any]:
    value = payload.get(key)
    if not isinstance(value, list):
        raise DeserializationError(f"Expected a list, got {type(value).__name__}", field=key)
    return value


def _node(raw: Any, index: int) -> Node:
    where = f"nodes[{index}]"
    if not isinstance(raw, dict):
        raise DeserializationError("Node record must be an object", field=where)
    label = raw.get("label", "")
    if not isinstance(label, str):
        raise DeserializationError("Node label must be a string", field=f"{where}.label")
    frequencies = raw.get("frequencies", {})
    if not isinstance(frequencies, dict):
        raise DeserializationError("Node frequencies must be an object", field=f"{where}.frequencies")
    parsed: Dict[int, int] = {}
    for key, count in frequencies.items():
        try:
            type_id = int(key)
        except ValueError as exc:
            raise DeserializationError(f"Invalid type id {key!r}", field=f"{where}.frequencies") from exc
        parsed[type_id] = _int(count, f"{where}.frequencies.{key}")
    return Node(node_number=_int(raw.get("number"), f"{where}.number"), label=label, type_frequencies=parsed)


def _type(raw: Any, index: int) -> Type:
    where = f"types[{index}]"
    if not isinstance(raw, dict):
        raise DeserializationError("Type record must be an object", field=where)
    name = raw.get("name", "")
    if not isinstance(name, str):
        raise DeserializationError("Type name must be a string", field=f"{where}.name")
    vector = raw.get("vector", [])
    if not isinstance(vector, list) or not all(
        isinstance(v, numbers.Real) and not isinstance(v, bool) for v in vector
    ):
        raise DeserializationError("Type vector must be a list of numbers", field=f"{where}.vector")
    return Type(type_id=_int(raw.get("id"), f"{where}.id"), name=name, vector=tuple(float(v) for v in vector))


def deserialize(data: bytes) -> CorpusTransfer:
    """Decode a transfer record; any malformed input raises ``DeserializationError``."""
    try:
        payload = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DeserializationError(f"Corpus transfer record is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DeserializationError("Corpus transfer record must be a JSON object")

    number_of_nodes = _count(payload, "numberOfNodes")
    number_of_types = _count(payload, "numberOfTypes")
    nodes = [_node(raw, idx) for idx, raw in enumerate(_list(payload, "nodes"))]
    types = [_type(raw, idx) for idx, raw in enumerate(_list(payload, "types"))]

    if len(nodes) != number_of_nodes:
        raise DeserializationError(
            f"numberOfNodes={number_of_nodes} but {len(nodes)} node records present",
            field="numberOfNodes",
        )
    seen: Dict[int, int] = {}
    for idx, node in enumerate(nodes):
        if node.node_number in seen:
            raise DeserializationError(
                f"Node number {node.node_number} already used by nodes[{seen[node.node_number]}]",
                field=f"nodes[{idx}].number",
            )
        seen[node.node_number] = idx
    if len(set(types)) != len(types):
        raise DeserializationError("Duplicate type ids in transfer record", field="types")
    if len(types) != number_of_types:
        raise DeserializationError(
            f"numberOfTypes={number_of_types} but {len(types)} type records present",
            field="numberOfTypes",
        )
    return CorpusTransfer(
        number_of_nodes=number_of_nodes,
        number_of_types=number_of_types,
        nodes=nodes,
        types=types,
    )
