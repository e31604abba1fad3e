"""Snipdex: a searchable catalog of text-expansion snippets."""

__version__ = "0.1.0"
