"""Has-source-at links between packages and source locations.

Ingestion resolves both endpoints, reuses an existing link with the same
defining fields, and otherwise stores a new link and appends it to both
endpoints' backlinks. Queries either fetch one link by id (strict: any
unresolvable endpoint is an error) or scan every link in insertion order
(soft: links whose endpoints fall outside the nested filters are dropped).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Sequence

from supplygraph.errors import MissingEndpointError

from ..models.identifiers import node_id, parse_node_id, same_instant
from ..models.nodes import EdgeKind, HasSourceAtBacklinks, HasSourceAtLink
from ..models.records import HasSourceAt
from ..models.specs import (
    HasSourceAtInputSpec,
    HasSourceAtSpec,
    MatchFlags,
    PkgInputSpec,
    SourceInputSpec,
)
from .packages import build_package_response, package_id_from_input
from .sources import build_source_response, source_id_from_input

if TYPE_CHECKING:
    from ..core.store import GraphStore

logger = logging.getLogger("supplygraph.graph.ops.has_source_at")


def _backlinks(store: "GraphStore", endpoint_id: int) -> Sequence[int]:
    node = store.index.lookup(endpoint_id)
    if isinstance(node, HasSourceAtBacklinks):
        return node.has_source_at_backlinks()
    return ()


def candidate_link_ids(store: "GraphStore", package_id: int, source_id: int) -> Sequence[int]:
    """Link ids that could duplicate a link between the two endpoints.

    Any existing duplicate appears in both endpoints' backlinks, so scanning
    the shorter list is enough. With ``dedup_scan_shorter`` disabled both
    lists are scanned.
    """
    package_links = _backlinks(store, package_id)
    source_links = _backlinks(store, source_id)
    if not store.config.dedup_scan_shorter:
        return tuple(dict.fromkeys((*package_links, *source_links)))
    if len(package_links) > len(source_links):
        return source_links
    return package_links


def find_duplicate(
    store: "GraphStore",
    package_id: int,
    source_id: int,
    attributes: HasSourceAtInputSpec,
) -> Optional[HasSourceAtLink]:
    """Return the stored link with the same six defining fields, if any."""
    known_since = store.normalize_time(attributes.known_since)
    wanted = (
        package_id,
        source_id,
        attributes.justification,
        attributes.origin,
        attributes.collector,
        known_since,
    )
    for link_id in candidate_link_ids(store, package_id, source_id):
        link = store.index.lookup_typed(link_id, HasSourceAtLink)
        fields = link.defining_fields()
        if fields[:5] == wanted[:5] and same_instant(fields[5], known_since):
            return link
    return None


def ingest_has_source_at(
    store: "GraphStore",
    package: PkgInputSpec,
    match_flags: MatchFlags,
    source: SourceInputSpec,
    has_source_at: HasSourceAtInputSpec,
) -> HasSourceAt:
    """Record that ``package`` was built from ``source``.

    Both endpoints must already be ingested. Ingesting the same tuple again
    returns the existing link.

    Raises:
        NotFoundError: If the package or source does not exist.
        MissingEndpointError: If the stored link cannot be materialized.
    """
    source_id = source_id_from_input(store, source)
    package_id = package_id_from_input(store, package, match_flags)

    link = find_duplicate(store, package_id, source_id, has_source_at)
    if link is not None:
        logger.debug("HasSourceAt %d already exists, reusing", link.id)
    else:
        link = HasSourceAtLink(
            id=store.index.allocate(),
            source_id=source_id,
            package_id=package_id,
            known_since=store.normalize_time(has_source_at.known_since),
            justification=has_source_at.justification,
            origin=has_source_at.origin,
            collector=has_source_at.collector,
        )
        _store_link(store, link)
        logger.debug(
            "Added HasSourceAt %d: package %d -> source %d",
            link.id,
            package_id,
            source_id,
        )

    record = build_has_source_at(store, link, None, strict=True)
    assert record is not None
    return record


def _store_link(store: "GraphStore", link: HasSourceAtLink) -> None:
    index = store.index
    package_node = index.lookup(link.package_id)
    source_node = index.lookup(link.source_id)

    index.add(link)
    index.add_edge(link.id, link.package_id, EdgeKind.PACKAGE)
    index.add_edge(link.id, link.source_id, EdgeKind.SOURCE)
    store.has_sources.append(link)
    for endpoint in (package_node, source_node):
        if isinstance(endpoint, HasSourceAtBacklinks):
            endpoint.add_has_source_at_backlink(link.id)


def _field_matches(expected: Optional[str], actual: str) -> bool:
    return expected is None or expected == actual


def _link_matches(store: "GraphStore", spec: Optional[HasSourceAtSpec], link: HasSourceAtLink) -> bool:
    if spec is None:
        return True
    if not (
        _field_matches(spec.justification, link.justification)
        and _field_matches(spec.origin, link.origin)
        and _field_matches(spec.collector, link.collector)
    ):
        return False
    if spec.known_since is not None:
        wanted: datetime = store.normalize_time(spec.known_since)
        return same_instant(link.known_since, wanted)
    return True


def query_has_source_at(
    store: "GraphStore", spec: Optional[HasSourceAtSpec]
) -> List[HasSourceAt]:
    """Return links matching ``spec``.

    Raises:
        InvalidIDError: If ``spec.id`` is not a decimal id.
        NotFoundError: If ``spec.id`` is not in the index.
        TypeMismatchError: If ``spec.id`` is not a has-source-at link.
        MissingEndpointError: If ``spec.id`` is set and an endpoint does not
            resolve under the nested filters.
    """
    if spec is not None and spec.id is not None:
        link = store.index.lookup_typed(parse_node_id(spec.id), HasSourceAtLink)
        record = build_has_source_at(store, link, spec, strict=True)
        assert record is not None
        return [record]

    out: List[HasSourceAt] = []
    for link in store.has_sources:
        if not _link_matches(store, spec, link):
            continue
        record = build_has_source_at(store, link, spec, strict=False)
        if record is None:
            continue
        out.append(record)
    logger.debug("HasSourceAt scan matched %d of %d links", len(out), len(store.has_sources))
    return out


def build_has_source_at(
    store: "GraphStore",
    link: HasSourceAtLink,
    spec: Optional[HasSourceAtSpec],
    strict: bool,
) -> Optional[HasSourceAt]:
    """Materialize ``link`` with its package and source records.

    In strict mode an endpoint that does not resolve raises
    MissingEndpointError; otherwise None is returned for this link.
    """
    package_filter = spec.package if spec is not None else None
    source_filter = spec.source if spec is not None else None

    package = build_package_response(store, link.package_id, package_filter)
    if package is None:
        if strict:
            raise MissingEndpointError(
                f"failed to retrieve package via package id {link.package_id}"
            )
        return None

    source = build_source_response(store, link.source_id, source_filter)
    if source is None:
        if strict:
            raise MissingEndpointError(
                f"failed to retrieve source via source id {link.source_id}"
            )
        return None

    return HasSourceAt(
        id=node_id(link.id),
        package=package,
        source=source,
        known_since=link.known_since,
        justification=link.justification,
        origin=link.origin,
        collector=link.collector,
    )
