"""Heuristic content-language detection for snippet display metadata.

The classifier only decorates snippets (language tag, display name, color).
It never influences search ranking.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

PLAINTEXT = "plaintext"
DEFAULT_COLOR = "#666666"

KEYWORD_SCORE = 2
PATTERN_SCORE = 3
EXTENSION_SCORE = 5


@dataclass(frozen=True)
class LanguageEntry:
    """One row of the language table.

    ``tag`` doubles as the identifying substring looked for in category and
    snippet names.
    """

    tag: str
    display_name: str
    color: str
    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]
    extensions: tuple[str, ...]


# Content is lowercased before matching, so a pattern with capitals only
# matches when compiled with re.IGNORECASE.
def _p(*patterns: str, flags: int = 0) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, flags) for p in patterns)


# Declaration order is significant: it decides both the name-hint
# short-circuit and score ties (first entry wins).
LANGUAGES: tuple[LanguageEntry, ...] = (
    LanguageEntry(
        "javascript",
        "JavaScript",
        "#f7df1e",
        ("function", "const", "let", "var", "=>", "console.log"),
        _p(r"function\s+\w+\s*\(", r"=>\s*{", r"console\.\w+"),
        (".js", ".mjs"),
    ),
    LanguageEntry(
        "jsx",
        "React JSX",
        "#61dafb",
        ("import react", "usestate", "useeffect", "jsx", "classname"),
        _p(r"import\s+React", r"<\w+\s*/?>", r"useState\(", r"useEffect\("),
        (".jsx", ".tsx"),
    ),
    LanguageEntry(
        "typescript",
        "TypeScript",
        "#3178c6",
        ("interface", "type", "enum", "implements", ": string", ": number"),
        _p(r"interface\s+\w+", r"type\s+\w+\s*=", r":\s*(string|number|boolean)"),
        (".ts", ".tsx"),
    ),
    LanguageEntry(
        "python",
        "Python",
        "#3776ab",
        ("def ", "import ", "from ", "print(", "if __name__"),
        _p(r"def\s+\w+\s*\(", r"import\s+\w+", r"print\s*\(", r"if\s+__name__"),
        (".py",),
    ),
    LanguageEntry(
        "java",
        "Java",
        "#007396",
        ("public class", "private", "protected", "static void", "system.out"),
        _p(r"public\s+class", r"public\s+static\s+void", r"System\.out"),
        (".java",),
    ),
    LanguageEntry(
        "csharp",
        "C#",
        "#239120",
        ("namespace", "using system", "public class", "static void main"),
        _p(r"namespace\s+\w+", r"using\s+System", r"public\s+class"),
        (".cs",),
    ),
    LanguageEntry(
        "cpp",
        "C++",
        "#00599c",
        ("#include", "std::", "cout", "int main()", "nullptr"),
        _p(r"#include\s*<", r"std::", r"cout\s*<<"),
        (".cpp", ".cc", ".cxx"),
    ),
    LanguageEntry(
        "go",
        "Go",
        "#00add8",
        ("package main", "func main()", "import", "fmt."),
        _p(r"package\s+\w+", r"func\s+\w+\s*\(", r"fmt\.\w+"),
        (".go",),
    ),
    LanguageEntry(
        "rust",
        "Rust",
        "#dea584",
        ("fn main()", "let mut", "impl", "pub fn", "use std"),
        _p(r"fn\s+\w+\s*\(", r"let\s+mut", r"impl\s+\w+"),
        (".rs",),
    ),
    LanguageEntry(
        "swift",
        "Swift",
        "#fa7343",
        ("func ", "var ", "let ", "import foundation", "->"),
        _p(r"func\s+\w+\s*\(", r"var\s+\w+\s*:", r"let\s+\w+\s*="),
        (".swift",),
    ),
    LanguageEntry(
        "ruby",
        "Ruby",
        "#cc342d",
        ("def ", "end", "puts", "require", "class ", "module"),
        _p(r"def\s+\w+", r"puts\s+", r"require\s+['\"]", r"class\s+\w+"),
        (".rb",),
    ),
    LanguageEntry(
        "php",
        "PHP",
        "#777bb4",
        ("<?php", "echo", "function", "$", "namespace"),
        _p(r"<\?php", r"\$\w+", r"echo\s+", r"function\s+\w+"),
        (".php",),
    ),
    LanguageEntry(
        "sql",
        "SQL",
        "#336791",
        ("select", "from", "where", "insert into", "create table", "join"),
        _p(r"SELECT\s+.+\s+FROM", r"INSERT\s+INTO", r"CREATE\s+TABLE", flags=re.IGNORECASE),
        (".sql",),
    ),
    LanguageEntry(
        "bash",
        "Bash",
        "#4eaa25",
        ("#!/bin/bash", "echo ", "if [", "for ", "while ", "sudo"),
        _p(r"^#!", r"echo\s+", r"if\s+\[", r"for\s+\w+\s+in"),
        (".sh", ".bash"),
    ),
    LanguageEntry(
        "html",
        "HTML",
        "#e34c26",
        ("<!doctype", "<html", "<head>", "<body>", "<div", "<script"),
        _p(r"<!DOCTYPE", r"<html", flags=re.IGNORECASE) + _p(r"</\w+>"),
        (".html", ".htm"),
    ),
    LanguageEntry(
        "css",
        "CSS",
        "#1572b6",
        ("color:", "margin:", "padding:", "display:", "@media", ".class"),
        _p(r"\w+\s*:\s*[\w#]+;", r"@media", r"\.\w+\s*{"),
        (".css", ".scss", ".sass"),
    ),
    LanguageEntry(
        "json",
        "JSON",
        "#292929",
        ("{", "}", '":', "[", "]"),
        _p(r"^\s*{[\s\S]*}\s*$", r"^\s*\[[\s\S]*\]\s*$"),
        (".json",),
    ),
    LanguageEntry(
        "yaml",
        "YAML",
        "#cb171e",
        ("---", ":", "-", "name:", "version:"),
        _p(r"^---", r"^\w+:") + _p(r"^-\s+", flags=re.MULTILINE),
        (".yml", ".yaml"),
    ),
    LanguageEntry(
        "markdown",
        "Markdown",
        "#083fa1",
        ("#", "##", "```", "**", "[", "]("),
        _p(r"^#+\s+", r"```\w*", r"\[.+\]\(.+\)"),
        (".md", ".markdown"),
    ),
)


class LanguageClassifier:
    """Classifies snippet content against an ordered language table."""

    def __init__(self, languages: tuple[LanguageEntry, ...] = LANGUAGES) -> None:
        self._languages = languages
        self._by_tag = {entry.tag: entry for entry in languages}

    def classify(
        self,
        content: str,
        category: str = "",
        name: str = "",
        keyword: str = "",
    ) -> str:
        """Detect the language of a snippet.

        A language named in the category or snippet name wins outright.
        Otherwise every language is scored against the content and the
        highest score wins, ties going to the earlier table entry.

        Args:
            content: Snippet body.
            category: Owning category name.
            name: Snippet display name.
            keyword: Snippet trigger keyword.

        Returns:
            Language tag, or "plaintext" when nothing matches.
        """
        content = (content or "").lower()
        category = (category or "").lower()
        name = (name or "").lower()
        keyword = (keyword or "").lower()

        for entry in self._languages:
            if entry.tag in category or entry.tag in name:
                return entry.tag

        best_tag = PLAINTEXT
        best_score = 0
        for entry in self._languages:
            score = self._score(entry, content, name, keyword)
            # Strictly greater keeps the first-registered entry on ties
            if score > best_score:
                best_tag, best_score = entry.tag, score
        return best_tag

    def _score(self, entry: LanguageEntry, content: str, name: str, keyword: str) -> int:
        score = 0
        for kw in entry.keywords:
            if kw in content:
                score += KEYWORD_SCORE
        for pattern in entry.patterns:
            if pattern.search(content):
                score += PATTERN_SCORE
        for ext in entry.extensions:
            if ext in name or ext in keyword:
                score += EXTENSION_SCORE
        return score

    def display_name(self, tag: str) -> str:
        if tag == PLAINTEXT:
            return "Plain Text"
        entry = self._by_tag.get(tag)
        return entry.display_name if entry else tag

    def color(self, tag: str) -> str:
        entry = self._by_tag.get(tag)
        return entry.color if entry else DEFAULT_COLOR


_default_classifier = LanguageClassifier()


def detect_language(content: str, category: str = "", name: str = "", keyword: str = "") -> str:
    """Classify with the built-in language table."""
    return _default_classifier.classify(content, category, name, keyword)
