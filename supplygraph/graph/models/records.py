"""Externally visible records returned by store operations.

Records are plain snapshots built from the node index; mutating one has no
effect on the store. Identifiers are decimal strings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List

from pydantic import BaseModel, Field


class PackageQualifier(BaseModel):
    key: str
    value: str


class PackageVersion(BaseModel):
    id: str
    version: str
    subpath: str
    qualifiers: Annotated[List[PackageQualifier], Field(default_factory=list)]


class PackageName(BaseModel):
    id: str
    name: str
    versions: Annotated[List[PackageVersion], Field(default_factory=list)]


class PackageNamespace(BaseModel):
    id: str
    namespace: str
    names: Annotated[List[PackageName], Field(default_factory=list)]


class Package(BaseModel):
    id: str
    type: str
    namespaces: Annotated[List[PackageNamespace], Field(default_factory=list)]


class SourceName(BaseModel):
    id: str
    name: str
    tag: str = ""
    commit: str = ""


class SourceNamespace(BaseModel):
    id: str
    namespace: str
    names: Annotated[List[SourceName], Field(default_factory=list)]


class Source(BaseModel):
    id: str
    type: str
    namespaces: Annotated[List[SourceNamespace], Field(default_factory=list)]


class HasSourceAt(BaseModel):
    """A package together with the source location it was built from."""

    id: str
    package: Package
    source: Source
    known_since: datetime
    justification: str
    origin: str
    collector: str
