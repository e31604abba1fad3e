"""Relational snippet source: the primary, authoritative store."""

import logging
import sqlite3
import threading
from pathlib import Path

from snipdex.catalog.models import RawRecord
from snipdex.constants.sources import SNIPPETS_QUERY, SOURCE_RELATIONAL, UNTITLED_SNIPPET_NAME
from snipdex.db.connection import ReadOnlyDatabase
from snipdex.errors import SourceUnavailable, UnavailableReason
from snipdex.sources.base import SourceAdapter, SourceBatch

logger = logging.getLogger(__name__)


class RelationalSource(SourceAdapter):
    """Reads every snippet row from a read-only SQLite store.

    Failures are fatal: a store that is missing or cannot be queried raises
    SourceUnavailable rather than yielding an empty batch, so a broken
    primary source is never mistaken for an empty one.
    """

    is_primary = True

    def __init__(self, db_path: Path, tag: str = SOURCE_RELATIONAL) -> None:
        self.db_path = Path(db_path)
        self._tag = tag

    @property
    def name(self) -> str:
        return self._tag

    def read(self, cancel: threading.Event | None = None) -> SourceBatch:
        if not self.db_path.is_file():
            raise SourceUnavailable(
                self.name, UnavailableReason.NOT_FOUND, f"no database at {self.db_path}"
            )

        try:
            db = ReadOnlyDatabase(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Cannot open snippet database {self.db_path}: {e}")
            raise SourceUnavailable(self.name, UnavailableReason.MALFORMED, str(e)) from e

        try:
            rows = db.fetchall(SNIPPETS_QUERY)
        except sqlite3.Error as e:
            logger.error(f"Cannot query snippet database {self.db_path}: {e}")
            raise SourceUnavailable(self.name, UnavailableReason.MALFORMED, str(e)) from e
        finally:
            db.close()

        batch = SourceBatch(source=self.name)
        for row in rows:
            uid = row["uid"]
            batch.records.append(
                RawRecord(
                    category=str(row["collection"] or ""),
                    name=str(row["name"] or UNTITLED_SNIPPET_NAME),
                    keyword=str(row["keyword"] or ""),
                    content=str(row["snippet"] or ""),
                    auto_expand=bool(row["autoexpand"]),
                    uid=str(uid) if uid not in (None, "") else None,
                    location=f"{self.db_path}#uid={uid}",
                )
            )

        logger.debug(f"Read {len(batch.records)} snippet row(s) from {self.db_path}")
        return batch
