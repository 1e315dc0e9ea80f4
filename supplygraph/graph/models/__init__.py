"""Data models and identifiers used by the graph package."""

from .identifiers import node_id, normalize_time, parse_node_id
from .nodes import (
    EdgeKind,
    HasSourceAtBacklinks,
    HasSourceAtLink,
    Node,
    NodeKind,
    PkgNameNode,
    PkgNamespaceNode,
    PkgTypeNode,
    PkgVersionNode,
    SrcNameNode,
    SrcNamespaceNode,
    SrcTypeNode,
)
from .records import (
    HasSourceAt,
    Package,
    PackageName,
    PackageNamespace,
    PackageQualifier,
    PackageVersion,
    Source,
    SourceName,
    SourceNamespace,
)
from .specs import (
    HasSourceAtInputSpec,
    HasSourceAtSpec,
    MatchFlags,
    PackageQualifierInputSpec,
    PackageQualifierSpec,
    PkgInputSpec,
    PkgMatchType,
    PkgSpec,
    SourceInputSpec,
    SourceSpec,
)

__all__ = [
    "EdgeKind",
    "HasSourceAt",
    "HasSourceAtBacklinks",
    "HasSourceAtInputSpec",
    "HasSourceAtLink",
    "HasSourceAtSpec",
    "MatchFlags",
    "Node",
    "NodeKind",
    "Package",
    "PackageName",
    "PackageNamespace",
    "PackageQualifier",
    "PackageQualifierInputSpec",
    "PackageQualifierSpec",
    "PackageVersion",
    "PkgInputSpec",
    "PkgMatchType",
    "PkgNameNode",
    "PkgNamespaceNode",
    "PkgSpec",
    "PkgTypeNode",
    "PkgVersionNode",
    "Source",
    "SourceInputSpec",
    "SourceName",
    "SourceNamespace",
    "SourceSpec",
    "SrcNameNode",
    "SrcNamespaceNode",
    "SrcTypeNode",
    "node_id",
    "normalize_time",
    "parse_node_id",
]
