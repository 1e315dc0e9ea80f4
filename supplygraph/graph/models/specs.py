"""Input and filter models for the package, source and has-source-at APIs.

Input specs describe an entity to ingest or resolve exactly; filter specs
describe a query where every ``None`` field is a wildcard. An empty string
is a real value and only matches an empty string.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PkgMatchType(str, Enum):
    """How an ingested relation attaches to a package."""

    ALL_VERSIONS = "all_versions"
    SPECIFIC_VERSION = "specific_version"


class MatchFlags(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pkg: Annotated[
        PkgMatchType,
        Field(
            default=PkgMatchType.SPECIFIC_VERSION,
            description="Attach to the package name or to one exact version",
        ),
    ]


class PackageQualifierInputSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: Annotated[str, Field(..., description="Qualifier key")]
    value: Annotated[str, Field(..., description="Qualifier value")]


class PackageQualifierSpec(BaseModel):
    """Qualifier filter; a missing value matches any value for the key."""

    model_config = ConfigDict(extra="forbid")

    key: Annotated[str, Field(..., description="Qualifier key")]
    value: Annotated[Optional[str], Field(default=None, description="Qualifier value")]


class PkgInputSpec(BaseModel):
    """Package coordinates in purl shape."""

    model_config = ConfigDict(extra="forbid")

    type: Annotated[str, Field(..., description="Package ecosystem, e.g. pypi")]
    namespace: Annotated[Optional[str], Field(default=None)]
    name: Annotated[str, Field(..., description="Package name")]
    version: Annotated[Optional[str], Field(default=None)]
    qualifiers: Annotated[List[PackageQualifierInputSpec], Field(default_factory=list)]
    subpath: Annotated[Optional[str], Field(default=None)]

    @field_validator("type", "name")
    @classmethod
    def _check_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Package type and name must be non-empty strings")
        return value

    def qualifier_pairs(self) -> tuple:
        return tuple(sorted((q.key, q.value) for q in self.qualifiers))


class PkgSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Annotated[Optional[str], Field(default=None, description="Decimal node id")]
    type: Annotated[Optional[str], Field(default=None)]
    namespace: Annotated[Optional[str], Field(default=None)]
    name: Annotated[Optional[str], Field(default=None)]
    version: Annotated[Optional[str], Field(default=None)]
    qualifiers: Annotated[Optional[List[PackageQualifierSpec]], Field(default=None)]
    match_only_empty_qualifiers: Annotated[
        bool,
        Field(
            default=False,
            description="Only match versions that carry no qualifiers",
        ),
    ]
    subpath: Annotated[Optional[str], Field(default=None)]

    def has_version_filter(self) -> bool:
        return (
            self.version is not None
            or self.subpath is not None
            or bool(self.qualifiers)
            or self.match_only_empty_qualifiers
        )


class SourceInputSpec(BaseModel):
    """Source repository location; tag and commit are mutually optional."""

    model_config = ConfigDict(extra="forbid")

    type: Annotated[str, Field(..., description="VCS type, e.g. git")]
    namespace: Annotated[str, Field(..., description="Host and owner, e.g. github.com/org")]
    name: Annotated[str, Field(..., description="Repository name")]
    tag: Annotated[Optional[str], Field(default=None)]
    commit: Annotated[Optional[str], Field(default=None)]

    @field_validator("type", "name")
    @classmethod
    def _check_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Source type and name must be non-empty strings")
        return value


class SourceSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Annotated[Optional[str], Field(default=None, description="Decimal node id")]
    type: Annotated[Optional[str], Field(default=None)]
    namespace: Annotated[Optional[str], Field(default=None)]
    name: Annotated[Optional[str], Field(default=None)]
    tag: Annotated[Optional[str], Field(default=None)]
    commit: Annotated[Optional[str], Field(default=None)]


class HasSourceAtInputSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    known_since: Annotated[
        datetime,
        Field(..., description="When the link became known; naive values are UTC"),
    ]
    justification: Annotated[str, Field(default="")]
    origin: Annotated[str, Field(default="")]
    collector: Annotated[str, Field(default="")]


class HasSourceAtSpec(BaseModel):
    """Query filter for has-source-at links.

    When ``id`` is set the other scalar fields are ignored and only the
    nested package/source filters apply to the returned record.
    """

    model_config = ConfigDict(extra="forbid")

    id: Annotated[Optional[str], Field(default=None, description="Decimal link id")]
    package: Annotated[Optional[PkgSpec], Field(default=None)]
    source: Annotated[Optional[SourceSpec], Field(default=None)]
    known_since: Annotated[Optional[datetime], Field(default=None)]
    justification: Annotated[Optional[str], Field(default=None)]
    origin: Annotated[Optional[str], Field(default=None)]
    collector: Annotated[Optional[str], Field(default=None)]
