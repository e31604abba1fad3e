"""Snippet bundle source.

Scans a fixed set of folders for exported ``.alfredsnippets`` bundles (zip
files). Each bundle is extracted into its own scratch directory, read with
the directory-source parser, and the scratch directory is removed again
whether extraction and parsing succeed or not.
"""

import logging
import tempfile
import threading
import zipfile
from dataclasses import replace
from pathlib import Path, PurePosixPath
from typing import Iterable

from snipdex.catalog.models import BuildIssue, RawRecord
from snipdex.constants.sources import BUNDLE_SUFFIX, DEFINITION_SUFFIXES, SOURCE_ARCHIVE
from snipdex.errors import ExtractionError
from snipdex.sources.base import SourceAdapter, SourceBatch
from snipdex.sources.directory import list_collections, read_collection

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "snipdex-bundle-"


def _check_members(bundle: zipfile.ZipFile, location: str) -> None:
    """Reject members that would land outside the extraction directory."""
    for member in bundle.namelist():
        path = PurePosixPath(member)
        if path.is_absolute() or ".." in path.parts or (path.parts and ":" in path.parts[0]):
            raise ExtractionError(location, f"unsafe member path {member!r}")


def extract_bundle(bundle_path: Path, dest: Path) -> None:
    """Extract a bundle into dest.

    Raises:
        ExtractionError: If the file is not a valid zip or has unsafe members.
    """
    location = str(bundle_path)
    try:
        with zipfile.ZipFile(bundle_path) as bundle:
            _check_members(bundle, location)
            bundle.extractall(dest)
    except zipfile.BadZipFile as e:
        raise ExtractionError(location, f"not a valid bundle: {e}") from e
    except (OSError, RuntimeError, ValueError) as e:
        # RuntimeError covers encrypted members
        raise ExtractionError(location, f"cannot extract: {e}") from e


def _has_definitions(directory: Path) -> bool:
    return any(
        p.is_file() and p.suffix.lower() in DEFINITION_SUFFIXES for p in directory.iterdir()
    )


class ArchiveSource(SourceAdapter):
    """Reads snippet bundles found in well-known folders.

    A bundle with definitions at its top level becomes one category named
    after the bundle; a bundle with subdirectories contributes one category
    per subdirectory. Every failure here is non-fatal.
    """

    def __init__(
        self,
        search_dirs: Iterable[Path],
        tag: str = SOURCE_ARCHIVE,
        scratch_root: Path | None = None,
    ) -> None:
        """Initialize the bundle scanner.

        Args:
            search_dirs: Folders whose top level is scanned for bundles.
            tag: Provenance tag for snippets from this source.
            scratch_root: Parent for scratch directories. Defaults to the
                system temp directory.
        """
        self.search_dirs = [Path(d) for d in search_dirs]
        self.scratch_root = scratch_root
        self._tag = tag

    @property
    def name(self) -> str:
        return self._tag

    def find_bundles(self) -> list[Path]:
        """All bundle files in the search folders, in folder then name order."""
        bundles: list[Path] = []
        for folder in self.search_dirs:
            if not folder.is_dir():
                continue
            try:
                bundles.extend(
                    sorted(
                        p
                        for p in folder.iterdir()
                        if p.is_file() and p.name.lower().endswith(BUNDLE_SUFFIX)
                    )
                )
            except OSError as e:
                logger.warning(f"Cannot scan {folder} for snippet bundles: {e}")
        return bundles

    def read(self, cancel: threading.Event | None = None) -> SourceBatch:
        batch = SourceBatch(source=self.name)
        for bundle_path in self.find_bundles():
            if cancel is not None and cancel.is_set():
                logger.info("Stopped reading snippet bundles: load cancelled")
                break
            self._read_bundle(bundle_path, batch)
        return batch

    def _read_bundle(self, bundle_path: Path, batch: SourceBatch) -> None:
        """Extract and parse one bundle into batch.

        The scratch directory is deleted by the context manager on every
        exit path, including errors raised while parsing.
        """
        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX, dir=self.scratch_root) as scratch:
            scratch_path = Path(scratch)
            try:
                extract_bundle(bundle_path, scratch_path)
            except ExtractionError as e:
                logger.warning(f"Skipping snippet bundle {e}")
                batch.skip_bundle(e)
                return

            before = len(batch.records)
            try:
                if _has_definitions(scratch_path):
                    read_collection(scratch_path, bundle_path.stem, batch)
                for collection in list_collections(scratch_path):
                    read_collection(collection, collection.name, batch)
            except OSError as e:
                batch.skip_bundle(ExtractionError(str(bundle_path), f"cannot read: {e}"))
                return

            # Rewrite scratch paths so reported locations point into the bundle
            for index in range(before, len(batch.records)):
                record = batch.records[index]
                batch.records[index] = _relocate(record, scratch_path, bundle_path)
            batch.issues[:] = [_relocate_issue(i, scratch_path, bundle_path) for i in batch.issues]

            logger.debug(f"Read {len(batch.records) - before} snippet(s) from {bundle_path}")


def _member_location(location: str, scratch: Path, bundle: Path) -> str:
    try:
        member = Path(location).relative_to(scratch)
    except ValueError:
        return location
    return f"{bundle}!{member.as_posix()}"


def _relocate(record: RawRecord, scratch: Path, bundle: Path) -> RawRecord:
    return replace(record, location=_member_location(record.location, scratch, bundle))


def _relocate_issue(issue: BuildIssue, scratch: Path, bundle: Path) -> BuildIssue:
    return replace(issue, location=_member_location(issue.location, scratch, bundle))
