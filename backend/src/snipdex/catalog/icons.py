"""Category display icons.

One ordered table of (substrings, icon) pairs, checked against the
lowercased category name. The first row with any matching substring wins.
"""

DEFAULT_ICON = "📁"

CATEGORY_ICONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("react",), "⚛️"),
    (("vue",), "💚"),
    (("angular",), "🅰️"),
    (("javascript", "js"), "📜"),
    (("typescript", "ts"), "📘"),
    (("python",), "🐍"),
    (("java",), "☕"),
    (("swift",), "🦉"),
    (("go",), "🐹"),
    (("rust",), "🦀"),
    (("ruby",), "💎"),
    (("php",), "🐘"),
    (("sql",), "🗄️"),
    (("docker",), "🐳"),
    (("kubernetes", "k8s"), "☸️"),
    (("git",), "🔀"),
    (("linux", "bash"), "🐧"),
    (("windows",), "🪟"),
    (("mac", "apple"), "🍎"),
    (("test",), "🧪"),
    (("debug",), "🐛"),
    (("interview",), "💼"),
    (("email",), "📧"),
    (("html",), "🌐"),
    (("css",), "🎨"),
)


def category_icon(name: str) -> str:
    """Return the display icon for a category name."""
    lowered = name.lower()
    for substrings, icon in CATEGORY_ICONS:
        if any(s in lowered for s in substrings):
            return icon
    return DEFAULT_ICON
