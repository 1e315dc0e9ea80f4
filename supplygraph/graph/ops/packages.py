"""Package trie: ingestion, id resolution and response building.

Packages are stored as type -> namespace -> name -> version nodes. Name and
version nodes are the ones other relations attach to, so both carry
has-source-at backlinks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from supplygraph.errors import NotFoundError

from ..models.identifiers import node_id, parse_node_id
from ..models.nodes import (
    PACKAGE_ENDPOINTS,
    EdgeKind,
    PkgNameNode,
    PkgNamespaceNode,
    PkgTypeNode,
    PkgVersionNode,
)
from ..models.records import (
    Package,
    PackageName,
    PackageNamespace,
    PackageQualifier,
    PackageVersion,
)
from ..models.specs import MatchFlags, PkgInputSpec, PkgMatchType, PkgSpec

if TYPE_CHECKING:
    from ..core.store import GraphStore

logger = logging.getLogger("supplygraph.graph.ops.packages")


def _matches(expected: Optional[str], actual: str) -> bool:
    return expected is None or expected == actual


def _version_matches_input(node: PkgVersionNode, spec: PkgInputSpec) -> bool:
    return (
        node.version == (spec.version or "")
        and node.subpath == (spec.subpath or "")
        and node.qualifiers == spec.qualifier_pairs()
    )


def _version_matches_filter(node: PkgVersionNode, spec: Optional[PkgSpec]) -> bool:
    if spec is None:
        return True
    if not (_matches(spec.version, node.version) and _matches(spec.subpath, node.subpath)):
        return False
    if spec.match_only_empty_qualifiers:
        return not node.qualifiers
    if spec.qualifiers:
        present = dict(node.qualifiers)
        for qualifier in spec.qualifiers:
            if qualifier.key not in present:
                return False
            if qualifier.value is not None and present[qualifier.key] != qualifier.value:
                return False
    return True


def _version_record(node: PkgVersionNode) -> PackageVersion:
    return PackageVersion(
        id=node_id(node.id),
        version=node.version,
        subpath=node.subpath,
        qualifiers=[PackageQualifier(key=k, value=v) for k, v in node.qualifiers],
    )


def ingest_package(store: "GraphStore", spec: PkgInputSpec) -> Package:
    """Insert a package (all trie levels) if missing and return its record.

    Re-ingesting the same coordinates returns the existing nodes.
    """
    index = store.index

    type_id = store.pkg_types.get(spec.type)
    if type_id is None:
        type_node = PkgTypeNode(id=index.allocate(), type=spec.type)
        index.add(type_node)
        store.pkg_types[spec.type] = type_node.id
    else:
        type_node = index.lookup_typed(type_id, PkgTypeNode)

    namespace = spec.namespace or ""
    ns_id = type_node.namespaces.get(namespace)
    if ns_id is None:
        ns_node = PkgNamespaceNode(id=index.allocate(), parent=type_node.id, namespace=namespace)
        index.add(ns_node)
        index.add_edge(type_node.id, ns_node.id, EdgeKind.CONTAINS)
        type_node.namespaces[namespace] = ns_node.id
    else:
        ns_node = index.lookup_typed(ns_id, PkgNamespaceNode)

    name_id = ns_node.names.get(spec.name)
    if name_id is None:
        name_node = PkgNameNode(id=index.allocate(), parent=ns_node.id, name=spec.name)
        index.add(name_node)
        index.add_edge(ns_node.id, name_node.id, EdgeKind.CONTAINS)
        ns_node.names[spec.name] = name_node.id
    else:
        name_node = index.lookup_typed(name_id, PkgNameNode)

    for version_id in name_node.versions:
        version_node = index.lookup_typed(version_id, PkgVersionNode)
        if _version_matches_input(version_node, spec):
            break
    else:
        version_node = PkgVersionNode(
            id=index.allocate(),
            parent=name_node.id,
            version=spec.version or "",
            subpath=spec.subpath or "",
            qualifiers=spec.qualifier_pairs(),
        )
        index.add(version_node)
        index.add_edge(name_node.id, version_node.id, EdgeKind.CONTAINS)
        name_node.versions.append(version_node.id)
        logger.info(
            "Ingested package %s/%s/%s@%s (id=%d)",
            spec.type,
            namespace,
            spec.name,
            version_node.version,
            version_node.id,
        )

    record = build_package_response(store, version_node.id, None)
    assert record is not None
    return record


def package_id_from_input(
    store: "GraphStore", spec: PkgInputSpec, match_flags: MatchFlags
) -> int:
    """Resolve package coordinates to the node a relation should attach to.

    Returns the name node for ``ALL_VERSIONS`` and the exact version node
    otherwise.

    Raises:
        NotFoundError: If the package was never ingested.
    """
    index = store.index
    type_id = store.pkg_types.get(spec.type)
    if type_id is None:
        raise NotFoundError(f"package type {spec.type!r} not found")
    type_node = index.lookup_typed(type_id, PkgTypeNode)

    namespace = spec.namespace or ""
    ns_id = type_node.namespaces.get(namespace)
    if ns_id is None:
        raise NotFoundError(f"package namespace {namespace!r} not found")
    ns_node = index.lookup_typed(ns_id, PkgNamespaceNode)

    name_id = ns_node.names.get(spec.name)
    if name_id is None:
        raise NotFoundError(f"package name {spec.name!r} not found")
    if match_flags.pkg is PkgMatchType.ALL_VERSIONS:
        return name_id

    name_node = index.lookup_typed(name_id, PkgNameNode)
    for version_id in name_node.versions:
        version_node = index.lookup_typed(version_id, PkgVersionNode)
        if _version_matches_input(version_node, spec):
            return version_id
    raise NotFoundError(
        f"package version {spec.version or ''!r} of {spec.name!r} not found"
    )


def build_package_response(
    store: "GraphStore", package_id: int, spec: Optional[PkgSpec]
) -> Optional[Package]:
    """Build the package record for a name or version node.

    Returns None when the node exists but ``spec`` filters it out.

    Raises:
        NotFoundError: If ``package_id`` is not in the index.
        TypeMismatchError: If ``package_id`` is not a package name or version.
    """
    index = store.index
    node = index.lookup_typed(package_id, PACKAGE_ENDPOINTS)

    if spec is not None and spec.id is not None and parse_node_id(spec.id) != package_id:
        return None

    versions: List[PackageVersion] = []
    if isinstance(node, PkgVersionNode):
        if not _version_matches_filter(node, spec):
            return None
        versions.append(_version_record(node))
        name_node = index.lookup_typed(node.parent, PkgNameNode)
    else:
        name_node = node

    ns_node = index.lookup_typed(name_node.parent, PkgNamespaceNode)
    type_node = index.lookup_typed(ns_node.parent, PkgTypeNode)
    if spec is not None and not (
        _matches(spec.name, name_node.name)
        and _matches(spec.namespace, ns_node.namespace)
        and _matches(spec.type, type_node.type)
    ):
        return None

    return Package(
        id=node_id(type_node.id),
        type=type_node.type,
        namespaces=[
            PackageNamespace(
                id=node_id(ns_node.id),
                namespace=ns_node.namespace,
                names=[
                    PackageName(
                        id=node_id(name_node.id),
                        name=name_node.name,
                        versions=versions,
                    )
                ],
            )
        ],
    )


def query_packages(store: "GraphStore", spec: Optional[PkgSpec]) -> List[Package]:
    """Return packages matching ``spec`` grouped by type and namespace.

    A name is included only when at least one of its versions matches any
    version-level criteria in ``spec``.
    """
    index = store.index
    if spec is not None and spec.id is not None:
        record = build_package_response(store, parse_node_id(spec.id), spec)
        return [record] if record is not None else []

    out: List[Package] = []
    for type_name, type_id in store.pkg_types.items():
        if spec is not None and not _matches(spec.type, type_name):
            continue
        type_node = index.lookup_typed(type_id, PkgTypeNode)
        namespaces: List[PackageNamespace] = []
        for namespace, ns_id in type_node.namespaces.items():
            if spec is not None and not _matches(spec.namespace, namespace):
                continue
            ns_node = index.lookup_typed(ns_id, PkgNamespaceNode)
            names = _query_names(store, ns_node, spec)
            if names:
                namespaces.append(
                    PackageNamespace(id=node_id(ns_id), namespace=namespace, names=names)
                )
        if namespaces:
            out.append(Package(id=node_id(type_id), type=type_name, namespaces=namespaces))
    return out


def _query_names(
    store: "GraphStore", ns_node: PkgNamespaceNode, spec: Optional[PkgSpec]
) -> List[PackageName]:
    names: List[PackageName] = []
    version_filtered = spec is not None and spec.has_version_filter()
    for name, name_id in ns_node.names.items():
        if spec is not None and not _matches(spec.name, name):
            continue
        name_node = store.index.lookup_typed(name_id, PkgNameNode)
        versions = [
            _version_record(v)
            for v in (
                store.index.lookup_typed(vid, PkgVersionNode) for vid in name_node.versions
            )
            if _version_matches_filter(v, spec)
        ]
        if version_filtered and not versions:
            continue
        names.append(PackageName(id=node_id(name_id), name=name, versions=versions))
    return names

