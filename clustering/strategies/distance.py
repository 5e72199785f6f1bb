"""Pairwise dissimilarity between types."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from clustering.corpus import Type


def type_matrix(types: Sequence[Type]) -> np.ndarray:
    """Stack type vectors into a 2D array, zero padding shorter vectors."""
    width = max((len(t.vector) for t in types), default=0)
    matrix = np.zeros((len(types), width), dtype=float)
    for row, t in enumerate(types):
        if t.vector:
            matrix[row, : len(t.vector)] = t.vector
    return matrix


def cosine_distances(types: Sequence[Type]) -> np.ndarray:
    """Cosine distance matrix; zero vectors are at distance 1 from all others."""
    vectors = type_matrix(types)
    norms = np.linalg.norm(vectors, axis=1)
    safe = np.where(norms > 0, norms, 1.0)
    unit = vectors / safe[:, None]
    similarity = np.clip(unit @ unit.T, -1.0, 1.0)
    distances = 1.0 - similarity
    np.fill_diagonal(distances, 0.0)
    return distances
