"""Suffix-tree derived corpus model: types, nodes and their container."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set, Tuple

from workflow.errors import CorpusIndexError

if TYPE_CHECKING:  # pragma: no cover
    from clustering.transfer import CorpusTransfer

# Node number 1 is the suffix-tree root; the first regular node is 2.
ROOT_NODE_NUMBER = 1
FIRST_NODE_NUMBER = 2


@dataclass(frozen=True, order=True)
class Type:
    """A document or category being clustered.

    Equality, hashing and ordering only consider ``type_id``.
    """

    type_id: int
    name: str = field(default="", compare=False)
    vector: Tuple[float, ...] = field(default=(), compare=False)

    @property
    def label(self) -> str:
        return self.name or f"type-{self.type_id}"

    def to_record(self) -> Dict[str, object]:
        return {"id": self.type_id, "name": self.label}


@dataclass
class Node:
    """An internal suffix-tree node with per-type occurrence counts."""

    node_number: int
    label: str = ""
    type_frequencies: Dict[int, int] = field(default_factory=dict)


def node_slot(node_number: int, number_of_nodes: int) -> Optional[int]:
    """Map an external node number to its array slot, or ``None`` if invalid."""
    slot = node_number - FIRST_NODE_NUMBER
    if 0 <= slot < number_of_nodes:
        return slot
    return None


class Corpus:
    """Types plus a node array addressed by node number.

    ``number_of_nodes`` must be set before any node is inserted; the node
    array always has exactly that many slots.
    """

    def __init__(self) -> None:
        self.number_of_types = 0
        self._number_of_nodes: Optional[int] = None
        self.types: Set[Type] = set()
        self._nodes: List[Optional[Node]] = []

    @property
    def number_of_nodes(self) -> int:
        return self._number_of_nodes or 0

    def set_number_of_nodes(self, number: int) -> None:
        if number < 0:
            raise ValueError("number_of_nodes must be non-negative")
        self._number_of_nodes = number
        self._nodes = [None] * number

    def set_number_of_types(self, number: int) -> None:
        if number < 0:
            raise ValueError("number_of_types must be non-negative")
        self.number_of_types = number

    def add_node(self, node: Node) -> None:
        if self._number_of_nodes is None:
            raise CorpusIndexError(
                f"Node {node.node_number} inserted before the node count was set",
                field="numberOfNodes",
            )
        slot = node_slot(node.node_number, self._number_of_nodes)
        if slot is None:
            raise CorpusIndexError(
                f"Node number {node.node_number} outside "
                f"[{FIRST_NODE_NUMBER}, {FIRST_NODE_NUMBER + self._number_of_nodes})",
                field="nodes",
            )
        if self._nodes[slot] is not None:
            raise CorpusIndexError(f"Node number {node.node_number} inserted twice", field="nodes")
        self._nodes[slot] = node

    def node_by_number(self, node_number: int) -> Optional[Node]:
        slot = node_slot(node_number, self.number_of_nodes)
        if slot is None:
            return None
        return self._nodes[slot]

    @property
    def nodes(self) -> List[Optional[Node]]:
        return list(self._nodes)

    def set_types(self, types: Iterable[Type]) -> None:
        self.types = set(types)

    def add_type(self, new_type: Type) -> None:
        self.types.add(new_type)

    def sorted_types(self) -> List[Type]:
        return sorted(self.types)

    @classmethod
    def from_transfer(cls, transfer: "CorpusTransfer") -> "Corpus":
        corpus = cls()
        corpus.set_number_of_nodes(transfer.number_of_nodes)
        corpus.set_number_of_types(transfer.number_of_types)
        corpus.set_types(transfer.types)
        for node in transfer.nodes:
            corpus.add_node(node)
        return corpus
