"""In-memory supply-chain graph store.

GraphStore is the single owner of the node index, the package and source
tries and the authoritative list of has-source-at links. Every public
method runs under one re-entrant lock, so concurrent callers are
serialized and observe each operation as a whole.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

from supplygraph.config.schema import StoreConfig

from ..models.identifiers import normalize_time
from ..models.nodes import HasSourceAtLink, NodeKind
from ..models.records import HasSourceAt, Package, Source
from ..models.specs import (
    HasSourceAtInputSpec,
    HasSourceAtSpec,
    MatchFlags,
    PkgInputSpec,
    PkgSpec,
    SourceInputSpec,
    SourceSpec,
)
from ..ops import has_source_at as _has_source_at
from ..ops import packages as _packages
from ..ops import sources as _sources
from .index import NodeIndex

logger = logging.getLogger("supplygraph.graph.core.store")


class GraphStore:
    """Graph store for packages, sources and has-source-at links.

    Nodes are created by the ingest methods and never removed; links are
    immutable once created.
    """

    def __init__(self, config: Optional[StoreConfig] = None) -> None:
        """Initialize an empty store.

        Args:
            config: Optional store configuration. Defaults to StoreConfig().
        """
        self.config = config or StoreConfig.default()
        self._zone = self.config.zone
        self._index = NodeIndex(id_limit=self.config.id_limit)

        # Trie roots: type name -> type node id
        self.pkg_types: Dict[str, int] = {}
        self.src_types: Dict[str, int] = {}

        # Authoritative link collection in insertion order
        self.has_sources: List[HasSourceAtLink] = []

        self._lock = threading.RLock()

        logger.info("GraphStore initialized (timezone=%s)", self.config.timezone)

    @property
    def index(self) -> NodeIndex:
        """Return the node index.

        Operation modules use it directly while the store lock is held.
        """
        return self._index

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding the whole store, for multi-call critical sections."""
        return self._lock

    def normalize_time(self, value: datetime) -> datetime:
        return normalize_time(value, self._zone)

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    def ingest_package(self, spec: PkgInputSpec) -> Package:
        with self._lock:
            return _packages.ingest_package(self, spec)

    def packages(self, spec: Optional[PkgSpec] = None) -> List[Package]:
        with self._lock:
            return _packages.query_packages(self, spec)

    def package_id_from_input(self, spec: PkgInputSpec, match_flags: MatchFlags) -> int:
        with self._lock:
            return _packages.package_id_from_input(self, spec, match_flags)

    def build_package_response(
        self, package_id: int, spec: Optional[PkgSpec] = None
    ) -> Optional[Package]:
        with self._lock:
            return _packages.build_package_response(self, package_id, spec)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def ingest_source(self, spec: SourceInputSpec) -> Source:
        with self._lock:
            return _sources.ingest_source(self, spec)

    def sources(self, spec: Optional[SourceSpec] = None) -> List[Source]:
        with self._lock:
            return _sources.query_sources(self, spec)

    def source_id_from_input(self, spec: SourceInputSpec) -> int:
        with self._lock:
            return _sources.source_id_from_input(self, spec)

    def build_source_response(
        self, source_id: int, spec: Optional[SourceSpec] = None
    ) -> Optional[Source]:
        with self._lock:
            return _sources.build_source_response(self, source_id, spec)

    # ------------------------------------------------------------------
    # HasSourceAt
    # ------------------------------------------------------------------

    def ingest_has_source_at(
        self,
        package: PkgInputSpec,
        match_flags: MatchFlags,
        source: SourceInputSpec,
        has_source_at: HasSourceAtInputSpec,
    ) -> HasSourceAt:
        """Link a package to the source it was built from.

        Args:
            package: Package coordinates; must already be ingested.
            match_flags: Attach to the package name or the exact version.
            source: Source location; must already be ingested.
            has_source_at: Justification, origin, collector and known_since.

        Returns:
            HasSourceAt: The new link, or the existing identical one.
        """
        with self._lock:
            return _has_source_at.ingest_has_source_at(
                self, package, match_flags, source, has_source_at
            )

    def has_source_at(self, spec: Optional[HasSourceAtSpec] = None) -> List[HasSourceAt]:
        """Query links by id or by field filters.

        Args:
            spec: Filter; None returns every link.

        Returns:
            List[HasSourceAt]: Matching links in insertion order.
        """
        with self._lock:
            return _has_source_at.query_has_source_at(self, spec)

    def has_source_at_links(self) -> Tuple[HasSourceAtLink, ...]:
        """Snapshot of stored links in insertion order."""
        with self._lock:
            return tuple(self.has_sources)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def node_count(self) -> int:
        with self._lock:
            return len(self._index)

    def get_summary(self) -> Dict[str, Any]:
        """Get store summary.

        Returns:
            Dict[str, Any]: Node count per kind plus totals.
        """
        with self._lock:
            counts = {kind.value: 0 for kind in NodeKind}
            for node in self._index.nodes():
                counts[node.kind.value] += 1
            return {
                "node_count": len(self._index),
                "edge_count": self._index.edge_count(),
                "kinds": counts,
            }

    def to_networkx(self) -> nx.MultiDiGraph:
        """Return a copy of the index graph without the node objects.

        Node attributes carry ``kind`` only; edges carry ``kind``.
        """
        with self._lock:
            graph = nx.MultiDiGraph()
            native = self._index.native_graph
            graph.add_nodes_from((n, {"kind": d["kind"]}) for n, d in native.nodes(data=True))
            graph.add_edges_from(native.edges(keys=True, data=True))
            return graph
