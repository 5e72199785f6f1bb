from __future__ import annotations

import json

import numpy as np
import pytest

from clustering.corpus import Type
from clustering.dispatch import (
    ClusteringType,
    FlatClusterStrategy,
    HierarchicalClusterStrategy,
    cluster_types,
)
from clustering.results import FlatClusteringResult, HierarchicalClusteringResult, NeighborJoiningResult
from clustering.strategies.distance import cosine_distances
from clustering.strategies.flat import FlatClusterer
from clustering.strategies.hierarchical import HierarchicalClusterer
from clustering.strategies.neighbor_join import NeighborJoining
from tests.corpus_factory import sample_types
from workflow.errors import AlgorithmContractViolation


def test_cosine_distances_handle_zero_and_ragged_vectors():
    types = [Type(0, "a", (1.0, 0.0)), Type(1, "b", (2.0,)), Type(2, "z", ())]
    distances = cosine_distances(types)

    assert distances.shape == (3, 3)
    assert distances[0, 1] == pytest.approx(0.0)
    assert distances[0, 2] == pytest.approx(1.0)
    assert np.allclose(np.diag(distances), 0.0)


def test_flat_clusterer_partitions_types_around_medoids():
    types = sample_types(5)
    clusterer = FlatClusterer(types)
    clusters = clusterer.analyse(3, 10)

    assert len(clusters) == 3
    members = sorted(t.type_id for cluster in clusters for t in cluster.members)
    assert members == [0, 1, 2, 3, 4]
    for cluster in clusters:
        assert cluster.medoid in cluster.members
        assert cluster.medoid in types


def test_flat_clusterer_keeps_k_clusters_for_identical_vectors():
    types = [Type(idx, f"same-{idx}", (1.0, 1.0)) for idx in range(4)]
    clusters = FlatClusterer(types).analyse(3, 10)

    assert len(clusters) == 3
    assert all(cluster.members for cluster in clusters)


def test_flat_clusterer_clips_k_and_handles_empty_input():
    assert len(FlatClusterer(sample_types(2)).analyse(3, 10)) == 2
    assert FlatClusterer([]).analyse(3, 10) == []
    with pytest.raises(ValueError):
        FlatClusterer(sample_types(2)).analyse(0, 10)


def test_flat_clusterer_is_deterministic():
    first = [c.medoid for c in FlatClusterer(sample_types(5)).analyse(3, 10)]
    second = [c.medoid for c in FlatClusterer(sample_types(5)).analyse(3, 10)]
    assert first == second


def test_flat_dot_export_has_one_subgraph_per_cluster():
    clusterer = FlatClusterer(sample_types(5))
    clusterer.analyse(3, 10)
    dot = clusterer.to_dot("news")

    assert dot.startswith('graph "news" {')
    assert dot.count("subgraph cluster_") == 3
    for idx in range(5):
        assert f'"t{idx}" [' in dot


def test_flat_dot_quotes_negative_type_ids():
    types = [Type(-2, "neg", (1.0, 0.0)), Type(-1, "near", (0.9, 0.1)), Type(0, "far", (0.0, 1.0))]
    clusterer = FlatClusterer(types)
    clusterer.analyse(2, 10)

    dot = clusterer.to_dot("ids")

    assert " t-" not in dot
    assert '"t-2" [' in dot and '"t-1" [' in dot


def test_hierarchical_clusterer_builds_single_root():
    types = sample_types(5)
    clusterer = HierarchicalClusterer(types)
    clusters = clusterer.analyze()

    assert len(clusters) == 1
    assert sorted(clusters[0].types) == types
    dot = clusterer.to_dot("news")
    assert dot.startswith('digraph "news" {')
    assert dot.count("->") == 2 * (len(types) - 1)


def test_hierarchical_merges_closest_types_first():
    types = sample_types(5)
    root = HierarchicalClusterer(types).analyze()[0]

    def leaves(cluster):
        return sorted(t.name for t in cluster.types)

    subtrees = []
    stack = [root]
    while stack:
        cluster = stack.pop()
        subtrees.append(leaves(cluster))
        stack.extend(cluster.children)
    assert ["alpha-1", "alpha-2"] in subtrees
    assert ["beta-1", "beta-2"] in subtrees


def test_hierarchical_clusterer_empty_input_has_no_root():
    assert HierarchicalClusterer([]).analyze() == []


def test_hierarchical_single_type_is_leaf_root():
    only = Type(-1, "solo", (1.0, 2.0))
    clusterer = HierarchicalClusterer([only])
    clusters = clusterer.analyze()

    assert len(clusters) == 1
    assert clusters[0].is_leaf
    assert '"t-1" [label="solo", shape=box];' in clusterer.to_dot("c")


def test_hierarchical_large_input_merges_into_one_tree():
    rng = np.random.default_rng(7)
    types = [Type(idx, f"doc-{idx}", tuple(rng.random(6))) for idx in range(150)]

    root = HierarchicalClusterer(types).analyze()[0]

    assert sorted(root.types) == types
    assert root.cluster_id == 2 * len(types) - 2
    internal = []
    stack = [root]
    while stack:
        cluster = stack.pop()
        if not cluster.is_leaf:
            internal.append(cluster)
            stack.extend(cluster.children)
    assert len(internal) == len(types) - 1
    for cluster in internal:
        for child in cluster.children:
            assert child.distance <= cluster.distance + 1e-9


@pytest.mark.parametrize(
    "count,expected",
    [(0, ";"), (1, "alpha-1;")],
)
def test_neighbor_joining_trivial_trees(count, expected):
    assert NeighborJoining(sample_types(count)).start() == expected


def test_neighbor_joining_tree_contains_every_type():
    types = sample_types(5)
    nj = NeighborJoining(types)
    tree = nj.start()

    assert tree == nj.get_tree()
    assert tree.endswith(";")
    assert tree.count("(") == tree.count(")") == len(types) - 1
    for t in types:
        assert t.name in tree


def test_neighbor_joining_escapes_reserved_characters():
    types = [Type(0, "a b", (1.0, 0.0)), Type(1, "c,d", (0.0, 1.0))]
    tree = NeighborJoining(types).start()

    assert "a_b" in tree
    assert "c_d" in tree


@pytest.mark.parametrize("value", [None, "KM", "bogus", "", ClusteringType.KM])
def test_unrecognized_clustering_type_defaults_to_flat(value):
    assert ClusteringType.from_value(value) is ClusteringType.KM


def test_default_dispatch_matches_explicit_flat():
    types = sample_types(5)
    explicit = cluster_types(types, "KM", corpus_name="c")
    fallback = cluster_types(types, "unknown", corpus_name="c")

    assert isinstance(fallback, FlatClusteringResult)
    assert fallback.text == explicit.text
    assert fallback.to_json() == explicit.to_json()


def test_flat_strategy_result_records():
    types = sample_types(5)
    result = FlatClusterStrategy().cluster(types, "corpus")
    records = json.loads(result.to_json())

    assert len(records) == 3
    names = {t.name for t in types}
    for record in records:
        assert record["medoid"]["name"] in names
        assert record["size"] == len(record["members"])


def test_hac_and_nj_results_serialize_to_null():
    types = sample_types(4)
    hac = cluster_types(types, "HAC")
    nj = cluster_types(types, "NJ")

    assert isinstance(hac, HierarchicalClusteringResult)
    assert isinstance(nj, NeighborJoiningResult)
    assert hac.to_json() == "null"
    assert nj.to_json() == "null"
    assert hac.text and nj.text


def test_hac_contract_violation_on_empty_input():
    with pytest.raises(AlgorithmContractViolation):
        HierarchicalClusterStrategy().cluster([], "corpus")


def test_hac_contract_violation_when_clusterer_leaves_forest(monkeypatch):
    class ForestClusterer:
        def __init__(self, types):
            self.types = types

        def analyze(self):
            return ["left", "right"]

        def to_dot(self, name):  # pragma: no cover - never rendered
            return "stale"

    monkeypatch.setattr("clustering.dispatch.HierarchicalClusterer", ForestClusterer)

    with pytest.raises(AlgorithmContractViolation) as excinfo:
        cluster_types(sample_types(3), "HAC")
    assert "2 top-level clusters" in str(excinfo.value)
