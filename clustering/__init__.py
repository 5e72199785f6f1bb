"""Suffix-tree corpus model and the clustering module."""

from .corpus import FIRST_NODE_NUMBER, Corpus, Node, Type
from .dispatch import ClusteringType, cluster_types
from .module import ClusteringState, SuffixTreeClusteringModule
from .results import (
    ClusterResult,
    FlatClusteringResult,
    HierarchicalClusteringResult,
    NeighborJoiningResult,
)
from .transfer import CorpusTransfer, deserialize, serialize

__all__ = [
    "Corpus",
    "Node",
    "Type",
    "FIRST_NODE_NUMBER",
    "CorpusTransfer",
    "serialize",
    "deserialize",
    "ClusteringType",
    "cluster_types",
    "ClusterResult",
    "FlatClusteringResult",
    "HierarchicalClusteringResult",
    "NeighborJoiningResult",
    "SuffixTreeClusteringModule",
    "ClusteringState",
]
