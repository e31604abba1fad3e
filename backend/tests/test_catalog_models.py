"""Catalog data model tests, including property-based invariants."""

import asyncio
from datetime import datetime, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from snipdex.api.schemas import BuildReportOut, CatalogOut, SnippetOut
from snipdex.catalog.builder import CatalogBuilder
from snipdex.catalog.models import (
    BuildReport,
    Catalog,
    Category,
    IssueKind,
    RawRecord,
    Snippet,
)

from conftest import FakeSource


def make_snippet(snippet_id: str, name: str = "Name", category: str = "Cat") -> Snippet:
    return Snippet(
        id=snippet_id,
        name=name,
        keyword="",
        content="",
        category=category,
        auto_expand=True,
        source="test",
    )


# =============================================================================
# Snippet
# =============================================================================


def test_snippet_is_frozen():
    snippet = make_snippet("a")
    with pytest.raises(AttributeError):
        snippet.name = "Other"  # type: ignore[misc]


def test_with_preferences_returns_copy():
    snippet = make_snippet("a")
    used = datetime(2024, 1, 1, tzinfo=timezone.utc)

    updated = snippet.with_preferences(True, used)

    assert updated is not snippet
    assert updated.is_favorite is True
    assert updated.last_used == used
    assert snippet.is_favorite is False


def test_with_unchanged_preferences_returns_same_object():
    snippet = make_snippet("a")
    assert snippet.with_preferences(False, None) is snippet


def test_snippet_payload_uses_camel_case():
    data = SnippetOut.from_snippet(make_snippet("a")).model_dump(by_alias=True, mode="json")
    assert data["autoExpand"] is True
    assert data["languageColor"] == "#666666"
    assert data["lastUsed"] is None


# =============================================================================
# Catalog
# =============================================================================


def test_catalog_mappings_are_read_only():
    catalog = Catalog(
        snippets={"a": make_snippet("a")},
        categories={"Cat": Category("Cat", "📁", ("a",))},
        last_updated=datetime.now(timezone.utc),
    )
    with pytest.raises(TypeError):
        catalog.snippets["b"] = make_snippet("b")  # type: ignore[index]


def test_catalog_payload_shape():
    catalog = Catalog(
        snippets={"a": make_snippet("a"), "b": make_snippet("b", name="B")},
        categories={"Cat": Category("Cat", "📁", ("a", "b"))},
        last_updated=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )

    data = CatalogOut.from_catalog(catalog, catalog.snippet_list()).model_dump(
        by_alias=True, mode="json"
    )

    assert set(data) == {"categories", "snippets", "totalCount", "lastUpdated"}
    assert data["totalCount"] == 2
    assert data["categories"]["Cat"]["count"] == 2
    assert [s["id"] for s in data["categories"]["Cat"]["snippets"]] == ["a", "b"]
    assert data["lastUpdated"].startswith("2024-05-01")


def test_category_snippets_follow_category_order():
    catalog = Catalog(
        snippets={"a": make_snippet("a"), "b": make_snippet("b")},
        categories={"Cat": Category("Cat", "📁", ("b", "a"))},
        last_updated=datetime.now(timezone.utc),
    )
    assert [s.id for s in catalog.category_snippets("Cat")] == ["b", "a"]
    assert catalog.category_snippets("Missing") == []


# =============================================================================
# BuildReport
# =============================================================================


def test_build_report_counts_by_kind():
    report = BuildReport()
    report.add(IssueKind.ENTRY_PARSE, "directory", "a.json", "bad")
    report.add(IssueKind.ENTRY_PARSE, "directory", "b.json", "bad")
    report.add(IssueKind.EXTRACTION, "archive", "x.alfredsnippets", "bad zip")

    assert report.counts == {"entry_parse_error": 2, "extraction_error": 1}
    assert not report.ok
    assert BuildReportOut.from_report(report).model_dump(by_alias=True)["counts"] == report.counts


# =============================================================================
# Property-based invariants
# =============================================================================

records_strategy = st.lists(
    st.builds(
        RawRecord,
        category=st.sampled_from(["Alpha", "Beta", "Gamma"]),
        name=st.text(max_size=8),
        keyword=st.text(max_size=4),
        content=st.text(max_size=12),
        uid=st.one_of(st.none(), st.sampled_from(["u1", "u2", "u3", "u4"])),
        location=st.text(max_size=6),
    ),
    max_size=25,
)


@settings(max_examples=60, deadline=None)
@given(primary=records_strategy, supplementary=records_strategy)
def test_built_catalog_counts_are_consistent(primary, supplementary):
    builder = CatalogBuilder(
        [
            FakeSource(primary, tag="relational", primary=True),
            FakeSource(supplementary, tag="directory"),
        ]
    )
    outcome = asyncio.run(builder.build())
    catalog = outcome.catalog

    assert catalog.total_count == len(catalog.snippets)
    assert catalog.total_count == sum(c.count for c in catalog.categories.values())
    for category in catalog.categories.values():
        for snippet_id in category.snippet_ids:
            assert snippet_id in catalog.snippets
            assert catalog.snippets[snippet_id].category == category.name
    assert sum(outcome.report.records_by_source.values()) == catalog.total_count


@settings(max_examples=60, deadline=None)
@given(records=records_strategy)
def test_categories_are_sorted_by_display_name(records):
    outcome = asyncio.run(CatalogBuilder([FakeSource(records)]).build())

    for name in outcome.catalog.categories:
        names = [s.name.lower() for s in outcome.catalog.category_snippets(name)]
        assert names == sorted(names)


@settings(max_examples=40, deadline=None)
@given(records=records_strategy)
def test_get_returns_snippet_iff_listed(records):
    catalog = asyncio.run(CatalogBuilder([FakeSource(records)]).build()).catalog
    listed = {s.id for s in catalog.snippet_list()}

    for snippet_id in listed | {"u1", "u2", "missing"}:
        assert (catalog.get(snippet_id) is not None) == (snippet_id in listed)
