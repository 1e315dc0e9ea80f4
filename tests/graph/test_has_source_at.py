"""Tests for has-source-at ingestion and querying."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from supplygraph.config import StoreConfig
from supplygraph.errors import (
    InvalidIDError,
    MissingEndpointError,
    NotFoundError,
    TypeMismatchError,
)
from supplygraph.graph import (
    GraphStore,
    HasSourceAtSpec,
    MatchFlags,
    PkgInputSpec,
    PkgMatchType,
    PkgSpec,
    SourceInputSpec,
    SourceSpec,
)
from supplygraph.graph.models import HasSourceAtLink, PkgVersionNode, SrcNameNode

SPECIFIC = MatchFlags(pkg=PkgMatchType.SPECIFIC_VERSION)
T1 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _version_id(record) -> str:
    return record.package.namespaces[0].names[0].versions[0].id


def test_ingest_returns_full_record(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Ingested link carries both endpoints and its attributes."""
    link = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert link.justification == "built from tag v1"
    assert link.origin == "o1"
    assert link.collector == "c1"
    assert link.known_since == T1
    assert link.package.type == "pypi"
    assert link.package.namespaces[0].names[0].name == "requests"
    assert link.package.namespaces[0].names[0].versions[0].version == "2.31.0"
    assert link.source.namespaces[0].namespace == "github.com/psf"
    assert link.source.namespaces[0].names[0].tag == "v2.31.0"


def test_ingest_is_idempotent(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Identical tuples return the same link without growing the collection."""
    first = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    nodes_before = populated.node_count()
    second = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert first.id == second.id
    assert len(populated.has_source_at_links()) == 1
    assert populated.node_count() == nodes_before


def test_ingest_distinct_justification_creates_new_link(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Links differing only in justification are distinct."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("built from tag v1"))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("built from tag v2"))

    assert a.id != b.id
    assert len(populated.has_source_at_links()) == 2


@pytest.mark.parametrize("field", ["origin", "collector"])
def test_ingest_distinct_metadata_creates_new_link(populated: GraphStore, pkg, src, make_attrs, field) -> None:
    """Origin and collector are part of the link identity."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(**{field: "other"}))

    assert a.id != b.id


def test_ingest_distinguishes_repeated_dst_hour(pkg, src, make_attrs) -> None:
    """Instants sharing a wall-clock time in the store zone stay distinct."""
    store = GraphStore(StoreConfig(timezone="America/New_York"))
    store.ingest_package(pkg)
    store.ingest_source(src)
    first = datetime(2024, 11, 3, 5, 30, tzinfo=timezone.utc)
    second = datetime(2024, 11, 3, 6, 30, tzinfo=timezone.utc)

    a = store.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=first))
    b = store.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=second))

    assert a.id != b.id
    assert len(store.has_source_at_links()) == 2
    result = store.has_source_at(HasSourceAtSpec(known_since=second))
    assert [r.id for r in result] == [b.id]


def test_ingest_normalizes_known_since_offsets(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Same instant in different offsets deduplicates and is stored in UTC."""
    plus_two = T1.astimezone(timezone(timedelta(hours=2)))
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=T1))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=plus_two))

    assert a.id == b.id
    assert b.known_since.utcoffset() == timedelta(0)
    stored = populated.has_source_at_links()[0]
    assert stored.known_since.tzinfo is not None
    assert stored.known_since.utcoffset() == timedelta(0)


def test_ingest_naive_known_since_is_utc(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Naive timestamps are treated as UTC."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=datetime(2024, 3, 1, 12, 0)))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=T1))

    assert a.id == b.id


def test_ingest_distinct_known_since_creates_new_link(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Different instants produce different links."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(known_since=T1))
    b = populated.ingest_has_source_at(
        pkg, SPECIFIC, src, make_attrs(known_since=T1 + timedelta(seconds=1))
    )

    assert a.id != b.id


def test_ingest_appends_backlinks_on_both_endpoints(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Endpoint nodes record the link id in insertion order."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one"))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("two"))
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one"))

    version = populated.index.lookup_typed(int(_version_id(a)), PkgVersionNode)
    source = populated.index.lookup_typed(
        int(a.source.namespaces[0].names[0].id), SrcNameNode
    )
    assert version.has_source_at_backlinks() == (int(a.id), int(b.id))
    assert source.has_source_at_backlinks() == (int(a.id), int(b.id))


def test_ingest_all_versions_attaches_to_name(populated: GraphStore, pkg, src, make_attrs) -> None:
    """ALL_VERSIONS links the package name rather than a version."""
    by_name = populated.ingest_has_source_at(
        pkg, MatchFlags(pkg=PkgMatchType.ALL_VERSIONS), src, make_attrs()
    )
    by_version = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert by_name.package.namespaces[0].names[0].versions == []
    assert by_name.id != by_version.id


def test_ingest_missing_source_raises_not_found(store: GraphStore, pkg, src, make_attrs) -> None:
    """Endpoints must exist before a link is ingested."""
    store.ingest_package(pkg)
    with pytest.raises(NotFoundError):
        store.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    assert store.has_source_at_links() == ()


def test_ingest_missing_package_version_raises_not_found(populated: GraphStore, src, make_attrs) -> None:
    """An unknown version is not resolved to its name under SPECIFIC_VERSION."""
    other = PkgInputSpec(type="pypi", name="requests", version="9.9.9")
    with pytest.raises(NotFoundError):
        populated.ingest_has_source_at(other, SPECIFIC, src, make_attrs())


def test_dedup_uses_shorter_backlink_list(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Duplicates are found even when the package has many other links."""
    for i in range(5):
        other_src = SourceInputSpec(type="git", namespace="github.com/psf", name=f"fork{i}")
        populated.ingest_source(other_src)
        populated.ingest_has_source_at(pkg, SPECIFIC, other_src, make_attrs())

    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert a.id == b.id
    assert len(populated.has_source_at_links()) == 6


def test_dedup_without_shorter_list_heuristic(pkg, src, make_attrs) -> None:
    """Scanning both backlink lists gives the same result."""
    store = GraphStore(StoreConfig(dedup_scan_shorter=False))
    store.ingest_package(pkg)
    store.ingest_source(src)

    a = store.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    b = store.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert a.id == b.id


def test_concurrent_ingest_creates_single_link(populated: GraphStore, pkg, src, make_attrs) -> None:
    """The store lock serializes concurrent identical ingestions."""
    spec = make_attrs()

    def _ingest(_):
        return populated.ingest_has_source_at(pkg, SPECIFIC, src, spec).id

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = set(pool.map(_ingest, range(64)))

    assert len(ids) == 1
    assert len(populated.has_source_at_links()) == 1


def test_query_by_id_returns_single_link(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Direct id lookup returns exactly that link."""
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one"))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("two"))

    result = populated.has_source_at(HasSourceAtSpec(id=b.id))

    assert [r.id for r in result] == [b.id]


def test_query_by_id_ignores_scalar_filters(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Only nested endpoint filters apply in direct id mode."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    result = populated.has_source_at(HasSourceAtSpec(id=a.id, justification="nope"))

    assert [r.id for r in result] == [a.id]


def test_query_by_id_of_non_link_raises_type_mismatch(populated: GraphStore, pkg, src, make_attrs) -> None:
    """An existing node of another variant is a type mismatch."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    with pytest.raises(TypeMismatchError):
        populated.has_source_at(HasSourceAtSpec(id=_version_id(a)))


def test_query_by_unused_id_raises_not_found(populated: GraphStore) -> None:
    """An identifier never allocated is not found."""
    with pytest.raises(NotFoundError):
        populated.has_source_at(HasSourceAtSpec(id="999999"))


@pytest.mark.parametrize("raw", ["abc", "", "-1", "+5", " 5", "1.0", "4294967296", "9" * 5000])
def test_query_by_malformed_id_raises_invalid_id(populated: GraphStore, raw: str) -> None:
    """Only plain decimal uint32 strings are identifiers."""
    with pytest.raises(InvalidIDError):
        populated.has_source_at(HasSourceAtSpec(id=raw))


def test_scan_returns_links_in_insertion_order(populated: GraphStore, pkg, src, make_attrs) -> None:
    """An unfiltered scan lists every link oldest first."""
    ids = [
        populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(j)).id
        for j in ("c", "a", "b")
    ]

    assert [r.id for r in populated.has_source_at()] == ids
    assert [r.id for r in populated.has_source_at(HasSourceAtSpec())] == ids


def test_scan_filters_by_fields(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Scalar filters match by equality and unset ones are wildcards."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one", origin="x"))
    b = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("two", origin="x"))
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("two", origin="y", collector="c2"))

    assert [r.id for r in populated.has_source_at(HasSourceAtSpec(origin="x"))] == [a.id, b.id]
    assert [r.id for r in populated.has_source_at(HasSourceAtSpec(justification="two", origin="x"))] == [b.id]
    assert populated.has_source_at(HasSourceAtSpec(collector="missing")) == []


def test_scan_known_since_filter_keeps_matching_links(populated: GraphStore, pkg, src, make_attrs) -> None:
    """known_since keeps links at the same instant and skips the others."""
    later = T1 + timedelta(days=1)
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one", known_since=T1))
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("two", known_since=later))

    same_instant = T1.astimezone(timezone(timedelta(hours=-5)))
    result = populated.has_source_at(HasSourceAtSpec(known_since=same_instant))

    assert [r.id for r in result] == [a.id]


def test_scan_empty_string_filter_is_literal(populated: GraphStore, pkg, src, make_attrs) -> None:
    """An empty-string filter matches only empty values."""
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs("one"))
    empty = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs(""))

    assert [r.id for r in populated.has_source_at(HasSourceAtSpec(justification=""))] == [empty.id]


def _two_packages(store: GraphStore, src: SourceInputSpec, make_attrs):
    requests = PkgInputSpec(type="pypi", name="requests", version="2.31.0")
    urllib3 = PkgInputSpec(type="pypi", name="urllib3", version="2.0.0")
    store.ingest_package(requests)
    store.ingest_package(urllib3)
    store.ingest_source(src)
    a = store.ingest_has_source_at(requests, SPECIFIC, src, make_attrs())
    b = store.ingest_has_source_at(urllib3, SPECIFIC, src, make_attrs())
    return a, b


def test_scan_drops_links_outside_nested_package_filter(store: GraphStore, src, make_attrs) -> None:
    """Soft resolution skips records whose package is filtered out."""
    a, b = _two_packages(store, src, make_attrs)

    result = store.has_source_at(HasSourceAtSpec(package=PkgSpec(name="urllib3")))

    assert [r.id for r in result] == [b.id]
    assert a.id not in [r.id for r in result]


def test_scan_drops_links_outside_nested_source_filter(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Soft resolution also applies to the source endpoint."""
    other = SourceInputSpec(type="git", namespace="github.com/psf", name="requests", tag="v2.30.0")
    populated.ingest_source(other)
    populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    b = populated.ingest_has_source_at(pkg, SPECIFIC, other, make_attrs())

    result = populated.has_source_at(HasSourceAtSpec(source=SourceSpec(tag="v2.30.0")))

    assert [r.id for r in result] == [b.id]


def test_direct_id_with_unresolvable_endpoint_raises(store: GraphStore, src, make_attrs) -> None:
    """Strict resolution turns a filtered-out endpoint into an error."""
    a, _ = _two_packages(store, src, make_attrs)

    with pytest.raises(MissingEndpointError):
        store.has_source_at(HasSourceAtSpec(id=a.id, package=PkgSpec(name="urllib3")))
    with pytest.raises(MissingEndpointError):
        store.has_source_at(HasSourceAtSpec(id=a.id, source=SourceSpec(name="elsewhere")))


def test_direct_id_with_matching_nested_filter(store: GraphStore, src, make_attrs) -> None:
    """Nested filters that match still return the record."""
    a, _ = _two_packages(store, src, make_attrs)

    result = store.has_source_at(
        HasSourceAtSpec(id=a.id, package=PkgSpec(type="pypi", version="2.31.0"))
    )

    assert [r.id for r in result] == [a.id]


def test_scan_propagates_corrupt_link_errors(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Errors other than a filtered-out endpoint abort the scan."""
    good = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    source_id = int(good.source.namespaces[0].names[0].id)
    broken = HasSourceAtLink(
        id=populated.index.allocate(),
        source_id=source_id,
        package_id=source_id,
        known_since=T1,
        justification="",
        origin="",
        collector="",
    )
    populated.index.add(broken)
    populated.has_sources.append(broken)

    with pytest.raises(TypeMismatchError):
        populated.has_source_at()


def test_scenario_ingest_dedup_and_query(populated: GraphStore, pkg, src, make_attrs) -> None:
    """Ingest, re-ingest, filter, fetch by id and miss by id."""
    a = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())
    again = populated.ingest_has_source_at(pkg, SPECIFIC, src, make_attrs())

    assert again.id == a.id
    assert len(populated.has_source_at_links()) == 1
    assert populated.has_source_at(HasSourceAtSpec(justification="built from tag v1")) == [a]
    assert populated.has_source_at(HasSourceAtSpec(id=a.id)) == [a]
    with pytest.raises(NotFoundError):
        populated.has_source_at(HasSourceAtSpec(id="999999"))
