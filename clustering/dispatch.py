"""Clustering strategy selection."""
from __future__ import annotations

import abc
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

from clustering.corpus import Type
from clustering.results import (
    ClusterResult,
    FlatClusteringResult,
    HierarchicalClusteringResult,
    NeighborJoiningResult,
)
from clustering.strategies.flat import FlatClusterer
from clustering.strategies.hierarchical import HierarchicalClusterer
from clustering.strategies.neighbor_join import NeighborJoining
from utils.logging import get_logger
from workflow.errors import AlgorithmContractViolation

logger = get_logger(__name__)

FLAT_CLUSTER_COUNT = 3
FLAT_ITERATIONS = 10
FLAT_SEED = 42


class ClusteringType(str, Enum):
    NJ = "NJ"
    KM = "KM"
    HAC = "HAC"

    @classmethod
    def from_value(cls, value: Any) -> "ClusteringType":
        """Resolve a configured value; anything unrecognized falls back to KM."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.KM
        try:
            return cls(str(value))
        except ValueError:
            logger.warning(
                "Unknown clustering type %r, falling back to %s",
                value,
                cls.KM.value,
                extra={"field": "clusteringType"},
            )
            return cls.KM


class ClusteringStrategy(abc.ABC):
    @abc.abstractmethod
    def cluster(self, types: Sequence[Type], corpus_name: str) -> ClusterResult:
        """Cluster ``types`` and return the rendered result."""


class FlatClusterStrategy(ClusteringStrategy):
    def __init__(self, k: int = FLAT_CLUSTER_COUNT, iterations: int = FLAT_ITERATIONS, seed: int = FLAT_SEED) -> None:
        self.k = k
        self.iterations = iterations
        self.seed = seed

    def cluster(self, types: Sequence[Type], corpus_name: str) -> FlatClusteringResult:
        if len(types) < self.k:
            logger.warning(
                "Only %d types for k=%d; producing %d clusters",
                len(types),
                self.k,
                len(types),
                extra={"field": "clusteringType"},
            )
        clusterer = FlatClusterer(types, seed=self.seed)
        clusters = clusterer.analyse(self.k, self.iterations)
        for cluster in clusters:
            logger.debug("Cluster %d medoid=%s size=%d", cluster.index, cluster.medoid.label, len(cluster.members))
        return FlatClusteringResult(text=clusterer.to_dot(corpus_name), clusters=tuple(clusters))


class HierarchicalClusterStrategy(ClusteringStrategy):
    def cluster(self, types: Sequence[Type], corpus_name: str) -> HierarchicalClusteringResult:
        logger.info("Hierarchical clustering of %d types", len(types))
        clusterer = HierarchicalClusterer(types)
        clusters = clusterer.analyze()
        if len(clusters) != 1:
            raise AlgorithmContractViolation(
                f"Hierarchical clustering ended with {len(clusters)} top-level clusters, expected exactly 1",
                field="clusters",
            )
        return HierarchicalClusteringResult(text=clusterer.to_dot(corpus_name), root=clusters[0])


class NeighborJoinStrategy(ClusteringStrategy):
    def cluster(self, types: Sequence[Type], corpus_name: str) -> NeighborJoiningResult:
        logger.info("Neighbor joining of %d types", len(types))
        nj = NeighborJoining(types)
        return NeighborJoiningResult(text=nj.start())


STRATEGIES: Dict[ClusteringType, Callable[[], ClusteringStrategy]] = {
    ClusteringType.KM: FlatClusterStrategy,
    ClusteringType.HAC: HierarchicalClusterStrategy,
    ClusteringType.NJ: NeighborJoinStrategy,
}


def cluster_types(
    types: Sequence[Type],
    clustering_type: Any = None,
    *,
    corpus_name: str = "myCorpus",
    strategies: Optional[Dict[ClusteringType, Callable[[], ClusteringStrategy]]] = None,
) -> ClusterResult:
    selected = ClusteringType.from_value(clustering_type)
    strategy = (strategies or STRATEGIES)[selected]()
    return strategy.cluster(types, corpus_name)
