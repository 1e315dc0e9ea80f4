"""Source trie: ingestion, id resolution and response building.

Sources are stored as type -> namespace -> name nodes; a name node is one
repository at an optional tag or commit and is the endpoint relations
attach to.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from supplygraph.errors import NotFoundError

from ..models.identifiers import node_id, parse_node_id
from ..models.nodes import EdgeKind, SrcNameNode, SrcNamespaceNode, SrcTypeNode
from ..models.records import Source, SourceName, SourceNamespace
from ..models.specs import SourceInputSpec, SourceSpec

if TYPE_CHECKING:
    from ..core.store import GraphStore

logger = logging.getLogger("supplygraph.graph.ops.sources")


def _matches(expected: Optional[str], actual: str) -> bool:
    return expected is None or expected == actual


def _name_matches_input(node: SrcNameNode, spec: SourceInputSpec) -> bool:
    return (
        node.name == spec.name
        and node.tag == (spec.tag or "")
        and node.commit == (spec.commit or "")
    )


def _name_matches_filter(node: SrcNameNode, spec: Optional[SourceSpec]) -> bool:
    if spec is None:
        return True
    return (
        _matches(spec.name, node.name)
        and _matches(spec.tag, node.tag)
        and _matches(spec.commit, node.commit)
    )


def _name_record(node: SrcNameNode) -> SourceName:
    return SourceName(id=node_id(node.id), name=node.name, tag=node.tag, commit=node.commit)


def ingest_source(store: "GraphStore", spec: SourceInputSpec) -> Source:
    """Insert a source location if missing and return its record."""
    index = store.index

    type_id = store.src_types.get(spec.type)
    if type_id is None:
        type_node = SrcTypeNode(id=index.allocate(), type=spec.type)
        index.add(type_node)
        store.src_types[spec.type] = type_node.id
    else:
        type_node = index.lookup_typed(type_id, SrcTypeNode)

    ns_id = type_node.namespaces.get(spec.namespace)
    if ns_id is None:
        ns_node = SrcNamespaceNode(id=index.allocate(), parent=type_node.id, namespace=spec.namespace)
        index.add(ns_node)
        index.add_edge(type_node.id, ns_node.id, EdgeKind.CONTAINS)
        type_node.namespaces[spec.namespace] = ns_node.id
    else:
        ns_node = index.lookup_typed(ns_id, SrcNamespaceNode)

    for name_id in ns_node.names:
        name_node = index.lookup_typed(name_id, SrcNameNode)
        if _name_matches_input(name_node, spec):
            break
    else:
        name_node = SrcNameNode(
            id=index.allocate(),
            parent=ns_node.id,
            name=spec.name,
            tag=spec.tag or "",
            commit=spec.commit or "",
        )
        index.add(name_node)
        index.add_edge(ns_node.id, name_node.id, EdgeKind.CONTAINS)
        ns_node.names.append(name_node.id)
        logger.info(
            "Ingested source %s/%s/%s (id=%d)",
            spec.type,
            spec.namespace,
            spec.name,
            name_node.id,
        )

    record = build_source_response(store, name_node.id, None)
    assert record is not None
    return record


def source_id_from_input(store: "GraphStore", spec: SourceInputSpec) -> int:
    """Resolve a source location to its name node id.

    Raises:
        NotFoundError: If the source was never ingested.
    """
    index = store.index
    type_id = store.src_types.get(spec.type)
    if type_id is None:
        raise NotFoundError(f"source type {spec.type!r} not found")
    type_node = index.lookup_typed(type_id, SrcTypeNode)

    ns_id = type_node.namespaces.get(spec.namespace)
    if ns_id is None:
        raise NotFoundError(f"source namespace {spec.namespace!r} not found")
    ns_node = index.lookup_typed(ns_id, SrcNamespaceNode)

    for name_id in ns_node.names:
        if _name_matches_input(index.lookup_typed(name_id, SrcNameNode), spec):
            return name_id
    raise NotFoundError(f"source name {spec.name!r} not found")


def build_source_response(
    store: "GraphStore", source_id: int, spec: Optional[SourceSpec]
) -> Optional[Source]:
    """Build the source record for a name node.

    Returns None when the node exists but ``spec`` filters it out.

    Raises:
        NotFoundError: If ``source_id`` is not in the index.
        TypeMismatchError: If ``source_id`` is not a source name node.
    """
    index = store.index
    name_node = index.lookup_typed(source_id, SrcNameNode)
    if spec is not None and spec.id is not None and parse_node_id(spec.id) != source_id:
        return None
    if not _name_matches_filter(name_node, spec):
        return None

    ns_node = index.lookup_typed(name_node.parent, SrcNamespaceNode)
    type_node = index.lookup_typed(ns_node.parent, SrcTypeNode)
    if spec is not None and not (
        _matches(spec.namespace, ns_node.namespace) and _matches(spec.type, type_node.type)
    ):
        return None

    return Source(
        id=node_id(type_node.id),
        type=type_node.type,
        namespaces=[
            SourceNamespace(
                id=node_id(ns_node.id),
                namespace=ns_node.namespace,
                names=[_name_record(name_node)],
            )
        ],
    )


def query_sources(store: "GraphStore", spec: Optional[SourceSpec]) -> List[Source]:
    """Return sources matching ``spec`` grouped by type and namespace."""
    index = store.index
    if spec is not None and spec.id is not None:
        record = build_source_response(store, parse_node_id(spec.id), spec)
        return [record] if record is not None else []

    out: List[Source] = []
    for type_name, type_id in store.src_types.items():
        if spec is not None and not _matches(spec.type, type_name):
            continue
        type_node = index.lookup_typed(type_id, SrcTypeNode)
        namespaces: List[SourceNamespace] = []
        for namespace, ns_id in type_node.namespaces.items():
            if spec is not None and not _matches(spec.namespace, namespace):
                continue
            ns_node = index.lookup_typed(ns_id, SrcNamespaceNode)
            names = [
                _name_record(n)
                for n in (index.lookup_typed(nid, SrcNameNode) for nid in ns_node.names)
                if _name_matches_filter(n, spec)
            ]
            if names:
                namespaces.append(
                    SourceNamespace(id=node_id(ns_id), namespace=namespace, names=names)
                )
        if namespaces:
            out.append(Source(id=node_id(type_id), type=type_name, namespaces=namespaces))
    return out
