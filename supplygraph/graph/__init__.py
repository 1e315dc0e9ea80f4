"""Public graph API surface."""

from supplygraph.graph.core import GraphStore, NodeIndex
from supplygraph.graph.io import GraphDocument, dump_records, load_document
from supplygraph.graph.models import (
    HasSourceAt,
    HasSourceAtInputSpec,
    HasSourceAtSpec,
    MatchFlags,
    NodeKind,
    Package,
    PkgInputSpec,
    PkgMatchType,
    PkgSpec,
    Source,
    SourceInputSpec,
    SourceSpec,
    node_id,
    parse_node_id,
)
from supplygraph.graph.validation import Selection

__all__ = [
    "GraphDocument",
    "GraphStore",
    "HasSourceAt",
    "HasSourceAtInputSpec",
    "HasSourceAtSpec",
    "MatchFlags",
    "NodeIndex",
    "NodeKind",
    "Package",
    "PkgInputSpec",
    "PkgMatchType",
    "PkgSpec",
    "Selection",
    "Source",
    "SourceInputSpec",
    "SourceSpec",
    "dump_records",
    "load_document",
    "node_id",
    "parse_node_id",
]
