"""Shared pytest fixtures for all tests.

Fixtures build snippet sources in tmp_path: a directory of collections, a
SQLite store and zipped bundles. Connections are always closed so no test
leaks file descriptors.
"""

import asyncio
import gc
import json
import sqlite3
import zipfile
from pathlib import Path

import pytest

from snipdex.catalog.models import RawRecord
from snipdex.sources.base import SourceAdapter, SourceBatch


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Force garbage collection after each test to release file handles."""
    yield
    gc.collect()


# =============================================================================
# Helpers
# =============================================================================


def definition(
    snippet: str,
    name: str | None = None,
    keyword: str | None = None,
    uid: str | None = None,
    dontautoexpand: bool = False,
) -> dict:
    """Build one enveloped snippet definition."""
    envelope: dict = {"snippet": snippet, "dontautoexpand": dontautoexpand}
    if name is not None:
        envelope["name"] = name
    if keyword is not None:
        envelope["keyword"] = keyword
    if uid is not None:
        envelope["uid"] = uid
    return {"alfredsnippet": envelope}


def write_definition(collection: Path, filename: str, **fields) -> Path:
    """Write a JSON definition file into a collection directory."""
    collection.mkdir(parents=True, exist_ok=True)
    path = collection / filename
    path.write_text(json.dumps(definition(**fields)), encoding="utf-8")
    return path


def create_snippet_db(db_path: Path, rows: list[tuple]) -> Path:
    """Create a snippet store with rows of (uid, collection, name, keyword, snippet, autoexpand)."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            """
            CREATE TABLE snippets (
                uid TEXT PRIMARY KEY,
                collection TEXT,
                name TEXT,
                keyword TEXT,
                snippet TEXT,
                autoexpand INTEGER
            )
            """
        )
        conn.executemany("INSERT INTO snippets VALUES (?, ?, ?, ?, ?, ?)", rows)
        conn.commit()
    finally:
        conn.close()
    return db_path


def create_bundle(bundle_path: Path, members: dict[str, dict | str]) -> Path:
    """Write a zip bundle. Dict members are serialized as JSON."""
    bundle_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(bundle_path, "w") as bundle:
        for member, content in members.items():
            data = content if isinstance(content, str) else json.dumps(content)
            bundle.writestr(member, data)
    return bundle_path


class FakeSource(SourceAdapter):
    """In-memory adapter that counts how often it is read."""

    def __init__(
        self,
        records: list[RawRecord] | None = None,
        tag: str = "fake",
        primary: bool = False,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.records_to_return = list(records or [])
        self._tag = tag
        self.is_primary = primary
        self.error = error
        self.delay = delay
        self.calls = 0

    @property
    def name(self) -> str:
        return self._tag

    def read(self) -> SourceBatch:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SourceBatch(source=self.name, records=list(self.records_to_return))

    async def load(self) -> SourceBatch:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.read()


def record(category: str, name: str, keyword: str = "", content: str = "", uid=None) -> RawRecord:
    return RawRecord(category=category, name=name, keyword=keyword, content=content, uid=uid)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def snippets_dir(tmp_path):
    """A directory source with two collections and one broken file."""
    root = tmp_path / "snippets"
    write_definition(
        root / "JavaScript",
        "Console Log [js1].json",
        snippet="console.log($1);",
        name="Console Log",
        keyword="cl",
        uid="js1",
    )
    write_definition(
        root / "JavaScript",
        "Arrow Function [js2].json",
        snippet="const fn = () => {\n  $1\n};",
        name="Arrow Function",
        keyword="af",
        uid="js2",
    )
    write_definition(
        root / "React",
        "Use State [r1].json",
        snippet="const [state, setState] = useState(null);",
        name="Use State",
        keyword="us",
        uid="r1",
    )
    (root / "React" / "broken.json").write_text("{not json", encoding="utf-8")
    (root / ".hidden").mkdir()
    return root


@pytest.fixture
def snippet_db(tmp_path):
    """A relational store with a Shell and a JavaScript collection."""
    return create_snippet_db(
        tmp_path / "snippets.alfdb",
        [
            ("db1", "Shell", "List Files", "ll", "ls -la", 1),
            ("db2", "Shell", "Disk Usage", "du", "du -sh *", 0),
            ("db3", "JavaScript", "Debugger", "dbg", "debugger;", 1),
        ],
    )


@pytest.fixture
def archive_dir(tmp_path):
    """A folder holding one flat bundle and one bundle with collections."""
    folder = tmp_path / "Downloads"
    create_bundle(
        folder / "Git Tricks.alfredsnippets",
        {
            "Undo Commit [g1].json": definition("git reset HEAD~1", name="Undo Commit", uid="g1"),
            "info.plist": "<plist/>",
        },
    )
    create_bundle(
        folder / "Mixed.alfredsnippets",
        {
            "Python/Main Guard [p1].json": definition(
                "if __name__ == '__main__':\n    main()", name="Main Guard", uid="p1"
            ),
            "SQL/Select All [s1].json": definition("SELECT * FROM t;", name="Select All", uid="s1"),
        },
    )
    (folder / "notes.txt").write_text("not a bundle")
    return folder


@pytest.fixture
def scratch_root(tmp_path):
    """Parent directory for bundle scratch directories."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root
