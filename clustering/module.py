"""Module wrapping corpus reconstruction and clustering dispatch."""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from clustering.corpus import Corpus
from clustering.dispatch import STRATEGIES, ClusteringStrategy, ClusteringType, cluster_types
from clustering.results import ClusterResult
from clustering.transfer import deserialize
from workflow.base import Module
from workflow.pipes import PipeKind
from workflow.ports import InputPort, OutputPort


class ClusteringState(str, Enum):
    IDLE = "idle"
    DESERIALIZING = "deserializing"
    RECONSTRUCTING = "reconstructing"
    DISPATCHING = "dispatching"
    RENDERING = "rendering"
    CLOSED = "closed"
    FAILED = "failed"


class SuffixTreeClusteringModule(Module):
    """Cluster the types of a suffix-tree corpus read from a byte pipe.

    Writes the textual result (dot graph or Newick tree) to ``output`` and
    the cluster records as pretty printed JSON, or ``null`` when only the
    text is meaningful, to ``json``.
    """

    PROPERTYKEY_CLUST = "clusteringType"
    PROPERTYKEY_CORPNAME = "corpusName"

    INPUTID = "byteInput"
    OUTPUTID = "output"
    OUTPUTJSONID = "json"

    def __init__(
        self,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        settings: Optional[Dict[str, Any]] = None,
        strategies: Optional[Dict[ClusteringType, Callable[[], ClusteringStrategy]]] = None,
    ) -> None:
        super().__init__(properties, settings=settings)
        self.description = (
            "Clusters the types of a serialized suffix-tree corpus with neighbor "
            "joining, flat k-medoid or hierarchical agglomerative clustering."
        )
        self.property_descriptions[self.PROPERTYKEY_CLUST] = (
            'Clustering type: "NJ" (neighbor joining), "KM" (flat k-medoid), '
            '"HAC" (hierarchical agglomerative clustering)'
        )
        self.property_descriptions[self.PROPERTYKEY_CORPNAME] = "Corpus/text name used as graph label"
        self.property_defaults[self.PROPERTYKEY_NAME] = "SuffixTreeClustering"
        self.property_defaults[self.PROPERTYKEY_CLUST] = ClusteringType.KM.value
        self.property_defaults[self.PROPERTYKEY_CORPNAME] = "myCorpus"

        self.add_input_port(
            InputPort(self.INPUTID, "[bytes] serialized corpus transfer record.", self, supported=(PipeKind.BYTES,))
        )
        self.add_output_port(
            OutputPort(self.OUTPUTID, "[text] dot graph or Newick tree.", self, supported=(PipeKind.CHARS,))
        )
        self.add_output_port(
            OutputPort(self.OUTPUTJSONID, "[JSON] cluster records or null.", self, supported=(PipeKind.CHARS,))
        )

        self.strategies = strategies or STRATEGIES
        self.clustering_type = ClusteringType.KM
        self.corpus_name = "myCorpus"
        self.state = ClusteringState.IDLE
        self.result: Optional[ClusterResult] = None

    def apply_properties(self) -> None:
        super().apply_properties()
        self.clustering_type = ClusteringType.from_value(self.properties.get(self.PROPERTYKEY_CLUST))
        self.corpus_name = str(self.properties[self.PROPERTYKEY_CORPNAME])

    def _enter(self, state: ClusteringState) -> None:
        self.logger.debug("State %s -> %s", self.state.value, state.value, extra={"component": self.name})
        self.state = state

    def process(self) -> bool:
        pipe = self.input_ports[self.INPUTID].pipe
        try:
            self._enter(ClusteringState.DESERIALIZING)
            transfer = deserialize(pipe.read_all())

            self._enter(ClusteringState.RECONSTRUCTING)
            corpus = Corpus.from_transfer(transfer)
            types = corpus.sorted_types()

            self._enter(ClusteringState.DISPATCHING)
            self.logger.info(
                "Clustering %d types (%d nodes) with %s",
                len(types),
                corpus.number_of_nodes,
                self.clustering_type.value,
                extra={"component": self.name},
            )
            result = cluster_types(
                types,
                self.clustering_type,
                corpus_name=self.corpus_name,
                strategies=self.strategies,
            )

            self._enter(ClusteringState.RENDERING)
            self.output_ports[self.OUTPUTID].write_text(result.text)
            self.output_ports[self.OUTPUTJSONID].write_text(result.to_json())
        except Exception:
            self._enter(ClusteringState.FAILED)
            raise

        self.close_all_outputs()
        self.result = result
        self._enter(ClusteringState.CLOSED)
        return True
