"""Flat k-medoid clustering over corpus types."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np

from clustering.corpus import Type
from clustering.strategies.distance import cosine_distances
from clustering.strategies.render import dot_node_id, dot_quote


@dataclass
class FlatCluster:
    index: int
    medoid: Type
    members: List[Type] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "cluster": self.index,
            "medoid": self.medoid.to_record(),
            "size": len(self.members),
            "members": [member.to_record() for member in self.members],
        }


def _assign(distances: np.ndarray, medoids: np.ndarray) -> np.ndarray:
    labels = np.argmin(distances[:, medoids], axis=1)
    # a medoid always belongs to its own cluster, even when tied with another
    labels[medoids] = np.arange(len(medoids))
    return labels


def _update_medoids(distances: np.ndarray, labels: np.ndarray, medoids: np.ndarray) -> np.ndarray:
    updated = medoids.copy()
    for idx in range(len(medoids)):
        members = np.flatnonzero(labels == idx)
        within = distances[np.ix_(members, members)].sum(axis=1)
        updated[idx] = members[int(np.argmin(within))]
    return updated


class FlatClusterer:
    """Partition types around ``k`` medoids.

    Every returned cluster is non-empty and the number of clusters is
    ``min(k, len(types))``.
    """

    def __init__(self, types: Sequence[Type], *, seed: int = 42) -> None:
        self.types = list(types)
        self.seed = seed
        self.clusters: List[FlatCluster] = []
        self._distances = cosine_distances(self.types)

    def analyse(self, k: int, iterations: int) -> List[FlatCluster]:
        if k <= 0:
            raise ValueError("k must be a positive integer")
        if iterations <= 0:
            raise ValueError("iterations must be a positive integer")
        n = len(self.types)
        if n == 0:
            self.clusters = []
            return self.clusters

        k = min(k, n)
        rng = np.random.default_rng(self.seed)
        medoids = np.sort(rng.choice(n, size=k, replace=False))
        for _ in range(iterations):
            labels = _assign(self._distances, medoids)
            new_medoids = _update_medoids(self._distances, labels, medoids)
            if np.array_equal(new_medoids, medoids):
                break
            medoids = new_medoids
        labels = _assign(self._distances, medoids)

        self.clusters = [
            FlatCluster(
                index=idx,
                medoid=self.types[int(medoid)],
                members=[self.types[int(i)] for i in np.flatnonzero(labels == idx)],
            )
            for idx, medoid in enumerate(medoids)
        ]
        return self.clusters

    def to_dot(self, name: str = "clustering") -> str:
        lines = [f"graph {dot_quote(name)} {{", f"  label={dot_quote(name)};"]
        for cluster in self.clusters:
            medoid_id = dot_node_id(cluster.medoid)
            lines.append(f"  subgraph cluster_{cluster.index} {{")
            lines.append(f"    label={dot_quote('medoid: ' + cluster.medoid.label)};")
            for member in cluster.members:
                shape = ", shape=box" if member == cluster.medoid else ""
                lines.append(f"    {dot_node_id(member)} [label={dot_quote(member.label)}{shape}];")
            for member in cluster.members:
                if member != cluster.medoid:
                    lines.append(f"    {medoid_id} -- {dot_node_id(member)};")
            lines.append("  }")
        lines.append("}")
        return "\n".join(lines) + "\n"
