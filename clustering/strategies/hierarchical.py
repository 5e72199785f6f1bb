"""Average-linkage hierarchical agglomerative clustering."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from sklearn.cluster import AgglomerativeClustering

from clustering.corpus import Type
from clustering.strategies.distance import cosine_distances
from clustering.strategies.render import dot_node_id, dot_quote


@dataclass
class HierarchicalCluster:
    cluster_id: int
    types: List[Type]
    children: Tuple["HierarchicalCluster", ...] = ()
    distance: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def node_id(self) -> str:
        if self.is_leaf:
            return dot_node_id(self.types[0])
        return f"c{self.cluster_id}"


class HierarchicalClusterer:
    """Merge the two closest clusters until a single root remains.

    ``clusters`` holds the top level clusters left after :meth:`analyze`;
    for a non-empty input that is exactly one root.
    """

    def __init__(self, types: Sequence[Type]) -> None:
        self.types = list(types)
        self.clusters: List[HierarchicalCluster] = []

    def analyze(self) -> List[HierarchicalCluster]:
        nodes = [HierarchicalCluster(cluster_id=idx, types=[t]) for idx, t in enumerate(self.types)]
        if len(nodes) < 2:
            self.clusters = nodes
            return self.clusters

        model = AgglomerativeClustering(
            n_clusters=None,
            distance_threshold=0.0,
            compute_full_tree=True,
            metric="precomputed",
            linkage="average",
        )
        model.fit(cosine_distances(self.types))

        # merge i creates cluster len(types) + i from two earlier clusters
        for merge, (left, right) in enumerate(model.children_):
            nodes.append(
                HierarchicalCluster(
                    cluster_id=len(self.types) + merge,
                    types=nodes[left].types + nodes[right].types,
                    children=(nodes[left], nodes[right]),
                    distance=float(model.distances_[merge]),
                )
            )
        self.clusters = [nodes[-1]]
        return self.clusters

    def get_clusters(self) -> List[HierarchicalCluster]:
        return list(self.clusters)

    def to_dot(self, name: str = "clustering") -> str:
        lines = [f"digraph {dot_quote(name)} {{", f"  label={dot_quote(name)};"]
        stack = list(reversed(self.clusters))
        while stack:
            cluster = stack.pop()
            if cluster.is_leaf:
                lines.append(f"  {cluster.node_id} [label={dot_quote(cluster.types[0].label)}, shape=box];")
                continue
            lines.append(f"  {cluster.node_id} [label={dot_quote(f'{cluster.distance:.4f}')}, shape=ellipse];")
            for child in cluster.children:
                lines.append(f"  {cluster.node_id} -> {child.node_id};")
            stack.extend(reversed(cluster.children))
        lines.append("}")
        return "\n".join(lines) + "\n"
