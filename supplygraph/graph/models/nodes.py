"""Node variants held in the shared node index.

Every entity in the graph is one of the dataclasses below. The ``kind``
class attribute is the discriminant used by typed lookups; package name and
version nodes and source name nodes additionally carry an append-only list
of the has-source-at links that reference them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, List, Protocol, Tuple, runtime_checkable


class NodeKind(str, Enum):
    """Discriminant for node variants."""

    PKG_TYPE = "pkg_type"
    PKG_NAMESPACE = "pkg_namespace"
    PKG_NAME = "pkg_name"
    PKG_VERSION = "pkg_version"
    SRC_TYPE = "src_type"
    SRC_NAMESPACE = "src_namespace"
    SRC_NAME = "src_name"
    HAS_SOURCE_AT = "has_source_at"


class EdgeKind(str, Enum):
    """Structural edge kinds recorded in the index graph."""

    CONTAINS = "contains"
    PACKAGE = "package"
    SOURCE = "source"


@runtime_checkable
class HasSourceAtBacklinks(Protocol):
    """Capability of nodes that can be an endpoint of a has-source-at link."""

    def has_source_at_backlinks(self) -> Tuple[int, ...]:
        ...

    def add_has_source_at_backlink(self, link_id: int) -> None:
        ...


class _BacklinkMixin:
    has_source_at_links: List[int]

    def has_source_at_backlinks(self) -> Tuple[int, ...]:
        """Return link ids referencing this node, oldest first."""
        return tuple(self.has_source_at_links)

    def add_has_source_at_backlink(self, link_id: int) -> None:
        self.has_source_at_links.append(link_id)


class Node:
    """Base for every node variant; each variant declares ``id`` first."""

    id: int
    kind: ClassVar[NodeKind]


@dataclass(eq=False)
class PkgTypeNode(Node):
    id: int
    type: str
    namespaces: Dict[str, int] = field(default_factory=dict)

    kind: ClassVar[NodeKind] = NodeKind.PKG_TYPE


@dataclass(eq=False)
class PkgNamespaceNode(Node):
    id: int
    parent: int
    namespace: str
    names: Dict[str, int] = field(default_factory=dict)

    kind: ClassVar[NodeKind] = NodeKind.PKG_NAMESPACE


@dataclass(eq=False)
class PkgNameNode(_BacklinkMixin, Node):
    id: int
    parent: int
    name: str
    versions: List[int] = field(default_factory=list)
    has_source_at_links: List[int] = field(default_factory=list)

    kind: ClassVar[NodeKind] = NodeKind.PKG_NAME


@dataclass(eq=False)
class PkgVersionNode(_BacklinkMixin, Node):
    id: int
    parent: int
    version: str
    subpath: str
    # Sorted (key, value) pairs so that equal qualifier sets compare equal.
    qualifiers: Tuple[Tuple[str, str], ...] = ()
    has_source_at_links: List[int] = field(default_factory=list)

    kind: ClassVar[NodeKind] = NodeKind.PKG_VERSION


@dataclass(eq=False)
class SrcTypeNode(Node):
    id: int
    type: str
    namespaces: Dict[str, int] = field(default_factory=dict)

    kind: ClassVar[NodeKind] = NodeKind.SRC_TYPE


@dataclass(eq=False)
class SrcNamespaceNode(Node):
    id: int
    parent: int
    namespace: str
    names: List[int] = field(default_factory=list)

    kind: ClassVar[NodeKind] = NodeKind.SRC_NAMESPACE


@dataclass(eq=False)
class SrcNameNode(_BacklinkMixin, Node):
    id: int
    parent: int
    name: str
    tag: str = ""
    commit: str = ""
    has_source_at_links: List[int] = field(default_factory=list)

    kind: ClassVar[NodeKind] = NodeKind.SRC_NAME


@dataclass(frozen=True, eq=False)
class HasSourceAtLink(Node):
    """A package was built from a source location.

    Links are never mutated once stored; the defining tuple is the identity
    used for deduplication.
    """

    id: int
    source_id: int
    package_id: int
    known_since: datetime
    justification: str
    origin: str
    collector: str

    kind: ClassVar[NodeKind] = NodeKind.HAS_SOURCE_AT

    def defining_fields(self) -> Tuple[int, int, str, str, str, datetime]:
        return (
            self.package_id,
            self.source_id,
            self.justification,
            self.origin,
            self.collector,
            self.known_since,
        )


PACKAGE_ENDPOINTS = (PkgNameNode, PkgVersionNode)
SOURCE_ENDPOINTS = (SrcNameNode,)
