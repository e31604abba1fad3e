"""Database access for snippet stores."""

from snipdex.db.connection import ReadOnlyDatabase
