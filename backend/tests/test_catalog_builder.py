"""Catalog builder tests: merge precedence, ids and failure policy."""

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from snipdex.catalog.builder import CatalogBuilder, derive_snippet_id
from snipdex.catalog.models import IssueKind
from snipdex.errors import ExtractionError, SourceUnavailable, UnavailableReason
from snipdex.sources import ArchiveSource, DirectorySource, RelationalSource
from snipdex.sources.archive import extract_bundle

from conftest import FakeSource, record


async def test_primary_category_shadows_supplementary():
    primary = FakeSource([record("Shell", "List", uid="p1")], tag="relational", primary=True)
    supplementary = FakeSource(
        [record("Shell", "Other", uid="s1"), record("Git", "Status", uid="s2")],
        tag="directory",
    )

    catalog = (await CatalogBuilder([supplementary, primary]).build()).catalog

    assert catalog.categories["Shell"].snippet_ids == ("p1",)
    assert catalog.categories["Git"].snippet_ids == ("s2",)
    assert catalog.get("s1") is None


async def test_first_supplementary_wins_among_the_rest():
    first = FakeSource([record("Notes", "One", uid="a")], tag="directory")
    second = FakeSource([record("Notes", "Two", uid="b")], tag="archive")

    catalog = (await CatalogBuilder([first, second]).build()).catalog

    assert catalog.categories["Notes"].snippet_ids == ("a",)


async def test_primary_runs_before_supplementary():
    order: list[str] = []

    class Recording(FakeSource):
        def read(self):
            order.append(self.name)
            return super().read()

    builder = CatalogBuilder(
        [Recording(tag="directory"), Recording(tag="relational", primary=True)]
    )
    await builder.build()

    assert order == ["relational", "directory"]


async def test_category_order_and_name_sort():
    source = FakeSource(
        [
            record("Zeta", "b", uid="1"),
            record("Alpha", "Charlie", uid="2"),
            record("Zeta", "A", uid="3"),
            record("Alpha", "bravo", uid="4"),
        ]
    )

    catalog = (await CatalogBuilder([source]).build()).catalog

    # Categories keep merge order; members are sorted case-insensitively
    assert list(catalog.categories) == ["Zeta", "Alpha"]
    assert catalog.categories["Zeta"].snippet_ids == ("3", "1")
    assert catalog.categories["Alpha"].snippet_ids == ("4", "2")
    assert [s.id for s in catalog.snippet_list()] == ["3", "1", "4", "2"]


async def test_duplicate_ids_keep_first_and_report():
    source = FakeSource([record("A", "One", uid="dup"), record("B", "Two", uid="dup")])

    outcome = await CatalogBuilder([source]).build()

    assert outcome.catalog.get("dup").name == "One"
    assert outcome.report.counts == {"entry_parse_error": 1}


def test_derived_ids_are_stable_and_distinct():
    a = record("Cat", "Name", keyword="k")
    b = record("Cat", "Name", keyword="other")

    assert derive_snippet_id("directory", a) == derive_snippet_id("directory", a)
    assert derive_snippet_id("directory", a) != derive_snippet_id("directory", b)
    assert derive_snippet_id("directory", a).startswith("directory-")


async def test_snippets_carry_source_language_and_icon():
    source = FakeSource([record("Python", "Guard", content="if __name__ == '__main__':", uid="g")])

    catalog = (await CatalogBuilder([source]).build()).catalog
    snippet = catalog.get("g")

    assert snippet.source == "fake"
    assert snippet.language == "python"
    assert snippet.language_color == "#3776ab"
    assert catalog.categories["Python"].icon == "🐍"


async def test_last_updated_uses_clock():
    moment = datetime(2024, 2, 3, 4, 5, tzinfo=timezone.utc)
    outcome = await CatalogBuilder([FakeSource()], clock=lambda: moment).build()
    assert outcome.catalog.last_updated == moment


# =============================================================================
# Failure policy
# =============================================================================


async def test_primary_failure_is_fatal():
    error = SourceUnavailable("relational", UnavailableReason.NOT_FOUND)
    primary = FakeSource(tag="relational", primary=True, error=error)
    supplementary = FakeSource([record("A", "a", uid="x")])

    with pytest.raises(SourceUnavailable):
        await CatalogBuilder([primary, supplementary]).build()
    assert supplementary.calls == 0


async def test_supplementary_unavailable_is_skipped():
    error = SourceUnavailable("directory", UnavailableReason.NOT_FOUND)
    broken = FakeSource(tag="directory", error=error)
    healthy = FakeSource([record("A", "a", uid="x")], tag="archive")

    outcome = await CatalogBuilder([broken, healthy]).build()

    assert outcome.catalog.total_count == 1


async def test_supplementary_catalog_error_becomes_issue():
    broken = FakeSource(tag="archive", error=ExtractionError("b.zip", "boom"))

    outcome = await CatalogBuilder([broken]).build()

    assert outcome.catalog.total_count == 0
    assert outcome.report.issues[0].kind is IssueKind.EXTRACTION


async def test_primary_timeout_raises_timeout_reason():
    slow = FakeSource(tag="relational", primary=True, delay=1.0)

    with pytest.raises(SourceUnavailable) as exc_info:
        await CatalogBuilder([slow], timeout=0.01).build()

    assert exc_info.value.reason is UnavailableReason.TIMEOUT


async def test_supplementary_timeout_is_recorded():
    slow = FakeSource(tag="archive", delay=1.0)
    fast = FakeSource([record("A", "a", uid="x")], tag="directory")

    outcome = await CatalogBuilder([fast, slow], timeout=0.01).build()

    assert outcome.catalog.total_count == 1
    assert outcome.report.counts == {"source_timeout": 1}


# =============================================================================
# With real adapters
# =============================================================================


async def test_build_from_all_sources(
    snippet_db: Path, snippets_dir: Path, archive_dir: Path, scratch_root: Path
):
    builder = CatalogBuilder(
        [
            RelationalSource(snippet_db),
            DirectorySource(snippets_dir),
            ArchiveSource([archive_dir], scratch_root=scratch_root),
        ]
    )

    outcome = await builder.build()
    catalog = outcome.catalog

    # JavaScript exists in the store, so the directory's JavaScript is dropped
    assert catalog.categories["JavaScript"].snippet_ids == ("db3",)
    assert set(catalog.categories) == {
        "JavaScript", "Shell", "React", "Git Tricks", "Python", "SQL"
    }
    assert outcome.report.records_by_source == {"relational": 3, "directory": 1, "archive": 3}
    assert outcome.report.counts == {"entry_parse_error": 1}
    assert list(scratch_root.iterdir()) == []


async def test_concurrent_builds_are_independent():
    source = FakeSource([record("A", "a", uid="x")])
    builder = CatalogBuilder([source])

    first, second = await asyncio.gather(builder.build(), builder.build())

    assert first.catalog is not second.catalog
    assert source.calls == 2


async def test_timed_out_archive_leaves_no_scratch_dir(
    archive_dir: Path, scratch_root: Path, monkeypatch
):
    extracted: list[Path] = []

    def slow_extract(bundle_path: Path, dest: Path) -> None:
        extracted.append(bundle_path)
        time.sleep(0.3)
        extract_bundle(bundle_path, dest)

    monkeypatch.setattr("snipdex.sources.archive.extract_bundle", slow_extract)
    builder = CatalogBuilder(
        [ArchiveSource([archive_dir], scratch_root=scratch_root)], timeout=0.05
    )

    outcome = await builder.build()

    assert outcome.report.counts == {"source_timeout": 1}
    assert list(scratch_root.iterdir()) == []
    # The read stops after the bundle in progress
    assert len(extracted) == 1
