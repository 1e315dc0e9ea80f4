"""Pytest fixtures shared across all test modules."""

from datetime import datetime, timezone

import pytest

from supplygraph.graph import (
    GraphStore,
    HasSourceAtInputSpec,
    PkgInputSpec,
    SourceInputSpec,
)

T1 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> GraphStore:
    return GraphStore()


@pytest.fixture
def pkg() -> PkgInputSpec:
    return PkgInputSpec(type="pypi", name="requests", version="2.31.0")


@pytest.fixture
def src() -> SourceInputSpec:
    return SourceInputSpec(
        type="git", namespace="github.com/psf", name="requests", tag="v2.31.0"
    )


@pytest.fixture
def populated(store: GraphStore, pkg: PkgInputSpec, src: SourceInputSpec) -> GraphStore:
    """Store with one package version and one source already ingested."""
    store.ingest_package(pkg)
    store.ingest_source(src)
    return store


@pytest.fixture
def make_attrs():
    """Factory for link attributes with defaults matching the common scenario."""

    def _make(
        justification: str = "built from tag v1",
        known_since: datetime = T1,
        origin: str = "o1",
        collector: str = "c1",
    ) -> HasSourceAtInputSpec:
        return HasSourceAtInputSpec(
            known_since=known_since,
            justification=justification,
            origin=origin,
            collector=collector,
        )

    return _make
