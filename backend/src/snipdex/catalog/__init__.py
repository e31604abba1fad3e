"""Snippet catalog: data model and construction."""

from snipdex.catalog.models import (
    BuildIssue,
    BuildReport,
    Catalog,
    Category,
    IssueKind,
    RawRecord,
    Snippet,
)
from snipdex.catalog.icons import category_icon
