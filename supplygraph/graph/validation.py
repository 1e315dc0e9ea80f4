"""Exactly-one-of-N checks for tagged inputs.

Ingestion inputs must select exactly one alternative and raise
CardinalityViolationError otherwise. Query filters may be omitted
altogether, so their checks return a three-way Selection instead.
"""

import logging
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel

from supplygraph.errors import CardinalityViolationError

from .models.tagged import (
    CveOrGhsaInput,
    CveOrGhsaSpec,
    OsvCveOrGhsaInput,
    OsvCveOrGhsaSpec,
    PackageOrArtifactInput,
    PackageOrArtifactSpec,
    PackageOrSourceInput,
    PackageOrSourceSpec,
    PackageSourceOrArtifactInput,
    PackageSourceOrArtifactSpec,
)

logger = logging.getLogger("supplygraph.graph.validation")


class Selection(str, Enum):
    """Outcome of checking a query-side tagged filter."""

    UNSPECIFIED = "unspecified"
    SELECTED = "selected"
    INVALID = "invalid"

    def raise_if_invalid(self, what: str) -> "Selection":
        if self is Selection.INVALID:
            raise CardinalityViolationError(f"must specify at most one {what}")
        return self


def _count_selected(item: BaseModel, alternatives: Sequence[str]) -> int:
    return sum(1 for name in alternatives if getattr(item, name) is not None)


def _require_exactly_one(
    item: BaseModel, alternatives: Sequence[str], what: str, path: Optional[str] = None
) -> None:
    selected = _count_selected(item, alternatives)
    if selected != 1:
        where = f" for {path}" if path else ""
        raise CardinalityViolationError(
            f"must specify exactly one {what}{where}, got {selected}"
        )


def _check_selection(item: Optional[BaseModel], alternatives: Sequence[str]) -> Selection:
    if item is None:
        return Selection.UNSPECIFIED
    if _count_selected(item, alternatives) != 1:
        logger.debug("%s does not select exactly one alternative", type(item).__name__)
        return Selection.INVALID
    return Selection.SELECTED


_VULN_OSV_CVE_GHSA = ("osv", "cve", "ghsa")
_VULN_CVE_GHSA = ("cve", "ghsa")
_SUBJECT_PKG_SRC_ART = ("package", "source", "artifact")
_SUBJECT_PKG_SRC = ("package", "source")
_SUBJECT_PKG_ART = ("package", "artifact")


def validate_osv_cve_or_ghsa_input(vulnerability: OsvCveOrGhsaInput) -> None:
    _require_exactly_one(vulnerability, _VULN_OSV_CVE_GHSA, "vulnerability (cve, osv, or ghsa)")


def check_osv_cve_or_ghsa_query(vulnerability: Optional[OsvCveOrGhsaSpec]) -> Selection:
    return _check_selection(vulnerability, _VULN_OSV_CVE_GHSA)


def validate_cve_or_ghsa_input(cve_or_ghsa: CveOrGhsaInput, path: str) -> None:
    _require_exactly_one(cve_or_ghsa, _VULN_CVE_GHSA, "vulnerability (cve, or ghsa)", path)


def check_cve_or_ghsa_query(cve_or_ghsa: Optional[CveOrGhsaSpec]) -> Selection:
    return _check_selection(cve_or_ghsa, _VULN_CVE_GHSA)


def validate_package_source_or_artifact_input(
    item: PackageSourceOrArtifactInput, path: str
) -> None:
    _require_exactly_one(item, _SUBJECT_PKG_SRC_ART, "package, source, or artifact", path)


def check_package_source_or_artifact_query(
    subject: Optional[PackageSourceOrArtifactSpec],
) -> Selection:
    return _check_selection(subject, _SUBJECT_PKG_SRC_ART)


def validate_package_or_source_input(item: PackageOrSourceInput, path: str) -> None:
    _require_exactly_one(item, _SUBJECT_PKG_SRC, "package or source", path)


def check_package_or_source_query(subject: Optional[PackageOrSourceSpec]) -> Selection:
    return _check_selection(subject, _SUBJECT_PKG_SRC)


def validate_package_or_artifact_input(item: PackageOrArtifactInput, path: str) -> None:
    _require_exactly_one(item, _SUBJECT_PKG_ART, "package or artifact", path)


def check_package_or_artifact_query(subject: Optional[PackageOrArtifactSpec]) -> Selection:
    return _check_selection(subject, _SUBJECT_PKG_ART)
