"""Snippet content classification."""

from snipdex.classify.language import (
    LANGUAGES,
    PLAINTEXT,
    LanguageClassifier,
    LanguageEntry,
    detect_language,
)
