"""Snippet source locations and formats.

Three kinds of source feed the catalog:
- a directory of collections (one subdirectory per category, one JSON file
  per snippet, each wrapped in an "alfredsnippet" envelope),
- a read-only SQLite store owned by another application (the primary source),
- exported .alfredsnippets bundles (zip files) left in well-known folders.
"""

# =============================================================================
# Default Locations
# =============================================================================

DEFAULT_SNIPPETS_DIR = "~/Library/Application Support/Alfred/Alfred.alfredpreferences/snippets"
DEFAULT_SNIPPETS_DB = "~/Library/Application Support/Alfred/Databases/snippets.alfdb"

# Folders scanned for exported bundles. Only the top level of each is scanned.
ARCHIVE_SEARCH_DIRS = ("~/Downloads", "~/Desktop", "~/Documents")

# =============================================================================
# Formats
# =============================================================================

SNIPPET_ENVELOPE_KEY = "alfredsnippet"
DEFINITION_SUFFIXES = (".json", ".yaml", ".yml")
BUNDLE_SUFFIX = ".alfredsnippets"

# Defaults applied when a definition omits a field
UNTITLED_SNIPPET_NAME = "Untitled Snippet"

# =============================================================================
# Relational Store
# =============================================================================
# Rows are read in one query, ordered by collection then name.

SNIPPETS_QUERY = """
    SELECT uid, collection, name, keyword, snippet, autoexpand
    FROM snippets
    ORDER BY collection, name
"""

# =============================================================================
# Timeouts
# =============================================================================
# Upper bound on a single adapter's I/O.

DEFAULT_ADAPTER_TIMEOUT_SECONDS = 30.0

# =============================================================================
# Provenance Tags
# =============================================================================

SOURCE_RELATIONAL = "relational"
SOURCE_DIRECTORY = "directory"
SOURCE_ARCHIVE = "archive"
