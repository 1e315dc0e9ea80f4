"""Loading graph documents into a store and serializing query results.

A graph document is a mapping (usually read from TOML or JSON) with three
optional lists, ingested in order:

* ``packages``: PkgInputSpec mappings
* ``sources``: SourceInputSpec mappings
* ``has_source_at``: mappings with ``package``, ``source``, ``match``
  (``specific_version`` or ``all_versions``) and the link attributes
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Annotated, Dict, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from .core.store import GraphStore
from .models.records import HasSourceAt
from .models.specs import (
    HasSourceAtInputSpec,
    MatchFlags,
    PkgInputSpec,
    PkgMatchType,
    SourceInputSpec,
)

logger = logging.getLogger("supplygraph.graph.io")


class HasSourceAtEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    package: PkgInputSpec
    source: SourceInputSpec
    match: Annotated[PkgMatchType, Field(default=PkgMatchType.SPECIFIC_VERSION)]
    known_since: datetime
    justification: str = ""
    origin: str = ""
    collector: str = ""

    def attributes(self) -> HasSourceAtInputSpec:
        return HasSourceAtInputSpec(
            known_since=self.known_since,
            justification=self.justification,
            origin=self.origin,
            collector=self.collector,
        )


class GraphDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    packages: Annotated[List[PkgInputSpec], Field(default_factory=list)]
    sources: Annotated[List[SourceInputSpec], Field(default_factory=list)]
    has_source_at: Annotated[List[HasSourceAtEntry], Field(default_factory=list)]


def load_document(store: GraphStore, data: Dict[str, Any]) -> List[HasSourceAt]:
    """Ingest a graph document into ``store``.

    Args:
        store: Target store.
        data: Parsed document mapping.

    Returns:
        List[HasSourceAt]: One record per ``has_source_at`` entry, in order.
    """
    document = GraphDocument.model_validate(data)

    with store.lock:
        for package in document.packages:
            store.ingest_package(package)
        for source in document.sources:
            store.ingest_source(source)
        links = [
            store.ingest_has_source_at(
                entry.package,
                MatchFlags(pkg=entry.match),
                entry.source,
                entry.attributes(),
            )
            for entry in document.has_source_at
        ]

    logger.info(
        "Loaded document: %d package(s), %d source(s), %d link(s)",
        len(document.packages),
        len(document.sources),
        len(links),
    )
    return links


def dump_records(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    """Convert records into JSON-compatible dicts."""
    return [record.model_dump(mode="json") for record in records]
