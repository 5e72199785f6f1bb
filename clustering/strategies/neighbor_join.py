"""Neighbor joining tree construction with Newick output."""
from __future__ import annotations

from typing import List, Sequence

import numpy as np

from clustering.corpus import Type
from clustering.strategies.distance import cosine_distances
from clustering.strategies.render import newick_label


def _length(value: float) -> str:
    return f"{max(value, 0.0):.6f}"


class NeighborJoining:
    """Build an unrooted tree over the types; ``tree`` holds the Newick string."""

    def __init__(self, types: Sequence[Type]) -> None:
        self.types = list(types)
        self.tree = ""
        self._distances = cosine_distances(self.types)

    def start(self) -> str:
        labels: List[str] = [newick_label(t) for t in self.types]
        distances = self._distances.copy()

        if not labels:
            self.tree = ";"
            return self.tree
        if len(labels) == 1:
            self.tree = f"{labels[0]};"
            return self.tree

        while len(labels) > 2:
            r = len(labels)
            totals = distances.sum(axis=1)
            q = (r - 2) * distances - totals[:, None] - totals[None, :]
            np.fill_diagonal(q, np.inf)
            i, j = sorted(np.unravel_index(int(np.argmin(q)), q.shape))
            d_ij = distances[i, j]
            branch_i = 0.5 * d_ij + (totals[i] - totals[j]) / (2 * (r - 2))
            branch_j = d_ij - branch_i
            joined = f"({labels[i]}:{_length(branch_i)},{labels[j]}:{_length(branch_j)})"

            to_new = 0.5 * (distances[i] + distances[j] - d_ij)
            keep = [k for k in range(r) if k not in (i, j)]
            reduced = np.zeros((r - 1, r - 1), dtype=float)
            reduced[:-1, :-1] = distances[np.ix_(keep, keep)]
            reduced[-1, :-1] = to_new[keep]
            reduced[:-1, -1] = to_new[keep]
            distances = reduced
            labels = [labels[k] for k in keep] + [joined]

        half = distances[0, 1] / 2
        self.tree = f"({labels[0]}:{_length(half)},{labels[1]}:{_length(half)});"
        return self.tree

    def get_tree(self) -> str:
        return self.tree
