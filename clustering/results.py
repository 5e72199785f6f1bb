"""Uniform result shapes for the three clustering strategies.

Every result carries the textual rendering for the first output channel and
knows its structured form for the second: a list of cluster records for flat
clustering, ``None`` (serialized as JSON ``null``) when the text is the only
authoritative result.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from clustering.strategies.flat import FlatCluster
from clustering.strategies.hierarchical import HierarchicalCluster


@dataclass(frozen=True)
class ClusterResult:
    text: str

    def records(self) -> Optional[List[Dict[str, Any]]]:
        return None

    def to_json(self) -> str:
        return json.dumps(self.records(), indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class FlatClusteringResult(ClusterResult):
    clusters: Tuple[FlatCluster, ...]

    def records(self) -> List[Dict[str, Any]]:
        return [cluster.to_record() for cluster in self.clusters]


@dataclass(frozen=True)
class HierarchicalClusteringResult(ClusterResult):
    root: HierarchicalCluster


@dataclass(frozen=True)
class NeighborJoiningResult(ClusterResult):
    pass
