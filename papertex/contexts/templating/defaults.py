"""
Default values for LaTeX article generation.

Provides shared defaults used by:
- tex_format.py (reference prefixes, style class commands)
- render.py (metadata fallbacks for the template data)

Every fallback is a small function from an optional input to a value, so
missing metadata never blocks compilation.
"""

from typing import List, Optional

from papertex.contexts.document.ast import Node, has_class
from papertex.contexts.document.metadata import Author
from papertex.utils.timestamp import long_date

DEFAULT_TEMPLATE = "article"
DEFAULT_TAGS = ("<<", ">>")

UNTITLED = "Untitled Article"
UNKNOWN_AUTHOR = "Unknown Author"

# Literal text placed before \ref{} for each cross-reference category
REFERENCE_PREFIXES = {
    "fig": "Figure~",
    "tbl": "Table~",
    "eqn": "Equation~",
    "sec": "\\S",
}

# Style class -> LaTeX command. strong and demi collapse to bold.
STYLE_CLASSES = {
    "smallcaps": "textsc",
    "italic": "textit",
    "emph": "emph",
    "bold": "textbf",
    "strong": "textbf",
    "demi": "textbf",
    "underline": "uline",
}

# Top-level nodes pulled out of the main content into named template blocks
EXTRACTED_BLOCKS = ("abstract", "acknowledgments")
PREAMBLE_NODE = "latex:preamble"
TEASER_CLASS = "teaser"


def block_name(node: Node) -> Optional[str]:
    """Template block a top-level node belongs to, or None."""
    if node.name in EXTRACTED_BLOCKS:
        return node.name
    if node.name == PREAMBLE_NODE:
        return "preamble"
    if node.name == "figure" and has_class(node, TEASER_CLASS):
        return "teaser"
    return None


def default_title(title: Optional[str]) -> str:
    return title or UNTITLED


def default_authors(authors: Optional[List[Author]]) -> List[Author]:
    """Author list, or a single placeholder author when absent or empty."""
    if not authors:
        return [Author(name=UNKNOWN_AUTHOR)]
    return list(authors)


def default_date(date: Optional[str]) -> str:
    """Given date text, or today's date in long form (e.g. "October 18, 2026")."""
    return date or long_date()


def short_form(value: Optional[str]) -> Optional[str]:
    """Short title/author forms stay absent rather than empty."""
    return value or None
