"""Directory-of-collections snippet source.

Layout::

    root/
        Category A/
            Some Snippet [uid].json
            Other Snippet [uid].json
        Category B/
            ...

Each definition file holds one ``alfredsnippet`` envelope::

    {"alfredsnippet": {"snippet": "...", "uid": "...", "name": "...",
                       "keyword": "...", "dontautoexpand": false}}
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from snipdex.catalog.models import RawRecord
from snipdex.constants.sources import (
    DEFINITION_SUFFIXES,
    SNIPPET_ENVELOPE_KEY,
    SOURCE_DIRECTORY,
    UNTITLED_SNIPPET_NAME,
)
from snipdex.errors import EntryParseError
from snipdex.sources.base import SourceAdapter, SourceBatch

logger = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".") or path.name.startswith("__")


def _text_field(envelope: dict[str, Any], key: str, default: str, location: str) -> str:
    value = envelope.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value
    # YAML reads `keyword: 123` or `name: 2024` as numbers
    if isinstance(value, (bool, int, float)):
        return str(value)
    raise EntryParseError(location, f"field {key!r} must be text, not {type(value).__name__}")


def parse_definition(text: str, category: str, location: str, suffix: str = ".json") -> RawRecord:
    """Parse one snippet definition.

    Args:
        text: File contents.
        category: Category the definition belongs to.
        location: Path (or bundle member) used in error messages.
        suffix: File suffix, selecting JSON or YAML parsing.

    Returns:
        The parsed record.

    Raises:
        EntryParseError: If the text does not parse or lacks the envelope.
    """
    try:
        if suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise EntryParseError(location, f"invalid definition: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get(SNIPPET_ENVELOPE_KEY), dict):
        raise EntryParseError(location, f"missing {SNIPPET_ENVELOPE_KEY!r} envelope")

    envelope = data[SNIPPET_ENVELOPE_KEY]
    uid = envelope.get("uid")
    if uid is not None and not isinstance(uid, str):
        uid = str(uid)

    name = _text_field(envelope, "name", UNTITLED_SNIPPET_NAME, location)

    return RawRecord(
        category=category,
        name=name or UNTITLED_SNIPPET_NAME,
        keyword=_text_field(envelope, "keyword", "", location),
        content=_text_field(envelope, "snippet", "", location),
        auto_expand=not bool(envelope.get("dontautoexpand", False)),
        uid=uid or None,
        location=location,
    )


def read_collection(collection: Path, category: str, batch: SourceBatch) -> None:
    """Parse every definition file directly inside one collection directory.

    Unparseable files are recorded on the batch and skipped.
    """
    try:
        files = sorted(
            p
            for p in collection.iterdir()
            if p.is_file() and not _is_hidden(p) and p.suffix.lower() in DEFINITION_SUFFIXES
        )
    except OSError as e:
        batch.skip_entry(EntryParseError(str(collection), f"cannot list collection: {e}"))
        return

    for path in files:
        try:
            text = path.read_text(encoding="utf-8")
            batch.records.append(parse_definition(text, category, str(path), path.suffix))
        except UnicodeDecodeError as e:
            batch.skip_entry(EntryParseError(str(path), f"not UTF-8 text: {e}"))
        except OSError as e:
            batch.skip_entry(EntryParseError(str(path), f"cannot read file: {e}"))
        except EntryParseError as e:
            logger.warning(f"Skipping snippet definition {e}")
            batch.skip_entry(e)


def list_collections(root: Path) -> list[Path]:
    """Immediate, non-hidden subdirectories of root, sorted by name."""
    return sorted(p for p in root.iterdir() if p.is_dir() and not _is_hidden(p))


class DirectorySource(SourceAdapter):
    """Reads categories from subdirectories of a root path.

    A missing root is not an error: the source contributes nothing and the
    builder falls back to the other sources.
    """

    def __init__(self, root: Path, tag: str = SOURCE_DIRECTORY) -> None:
        self.root = Path(root)
        self._tag = tag

    @property
    def name(self) -> str:
        return self._tag

    def read(self, cancel: threading.Event | None = None) -> SourceBatch:
        batch = SourceBatch(source=self.name)
        if not self.root.is_dir():
            logger.info(f"Snippet directory not found: {self.root}")
            return batch

        try:
            collections = list_collections(self.root)
        except OSError as e:
            logger.warning(f"Cannot list snippet directory {self.root}: {e}")
            batch.skip_entry(EntryParseError(str(self.root), f"cannot list directory: {e}"))
            return batch

        for collection in collections:
            if cancel is not None and cancel.is_set():
                logger.info(f"Stopped reading {self.root}: load cancelled")
                break
            read_collection(collection, collection.name, batch)

        logger.debug(
            f"Read {len(batch.records)} snippet(s) from {len(collections)} collection(s) "
            f"under {self.root}"
        )
        return batch
