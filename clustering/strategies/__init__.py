"""Clustering algorithms operating on corpus types."""

from .flat import FlatCluster, FlatClusterer
from .hierarchical import HierarchicalCluster, HierarchicalClusterer
from .neighbor_join import NeighborJoining

__all__ = [
    "FlatCluster",
    "FlatClusterer",
    "HierarchicalCluster",
    "HierarchicalClusterer",
    "NeighborJoining",
]
