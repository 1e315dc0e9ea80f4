"""Tagged input shapes where callers must pick exactly one alternative.

Relations elsewhere in the supply-chain graph take a vulnerability or a
subject that can be one of several node families. The cardinality of these
shapes is checked by :mod:`supplygraph.graph.validation`.
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field

from .specs import PkgInputSpec, PkgSpec, SourceInputSpec, SourceSpec


class OsvInputSpec(BaseModel):
    osv_id: str


class OsvSpec(BaseModel):
    id: Optional[str] = None
    osv_id: Optional[str] = None


class GhsaInputSpec(BaseModel):
    ghsa_id: str


class GhsaSpec(BaseModel):
    id: Optional[str] = None
    ghsa_id: Optional[str] = None


class CveInputSpec(BaseModel):
    year: int
    cve_id: str


class CveSpec(BaseModel):
    id: Optional[str] = None
    year: Optional[int] = None
    cve_id: Optional[str] = None


class ArtifactInputSpec(BaseModel):
    algorithm: Annotated[str, Field(..., description="Digest algorithm, e.g. sha256")]
    digest: str


class ArtifactSpec(BaseModel):
    id: Optional[str] = None
    algorithm: Optional[str] = None
    digest: Optional[str] = None


class _Tagged(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OsvCveOrGhsaInput(_Tagged):
    osv: Optional[OsvInputSpec] = None
    cve: Optional[CveInputSpec] = None
    ghsa: Optional[GhsaInputSpec] = None


class OsvCveOrGhsaSpec(_Tagged):
    osv: Optional[OsvSpec] = None
    cve: Optional[CveSpec] = None
    ghsa: Optional[GhsaSpec] = None


class CveOrGhsaInput(_Tagged):
    cve: Optional[CveInputSpec] = None
    ghsa: Optional[GhsaInputSpec] = None


class CveOrGhsaSpec(_Tagged):
    cve: Optional[CveSpec] = None
    ghsa: Optional[GhsaSpec] = None


class PackageSourceOrArtifactInput(_Tagged):
    package: Optional[PkgInputSpec] = None
    source: Optional[SourceInputSpec] = None
    artifact: Optional[ArtifactInputSpec] = None


class PackageSourceOrArtifactSpec(_Tagged):
    package: Optional[PkgSpec] = None
    source: Optional[SourceSpec] = None
    artifact: Optional[ArtifactSpec] = None


class PackageOrSourceInput(_Tagged):
    package: Optional[PkgInputSpec] = None
    source: Optional[SourceInputSpec] = None


class PackageOrSourceSpec(_Tagged):
    package: Optional[PkgSpec] = None
    source: Optional[SourceSpec] = None


class PackageOrArtifactInput(_Tagged):
    package: Optional[PkgInputSpec] = None
    artifact: Optional[ArtifactInputSpec] = None


class PackageOrArtifactSpec(_Tagged):
    package: Optional[PkgSpec] = None
    artifact: Optional[ArtifactSpec] = None
