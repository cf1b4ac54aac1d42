"""
Structural block extraction.

Scans the direct children of the document root for nodes that templates
place outside the main body: abstract, acknowledgments, teaser figure and
raw LaTeX preamble.
"""

from typing import Dict, Optional, Tuple

from papertex.contexts.document.ast import Node, get_children, text_content
from papertex.contexts.templating.defaults import block_name
from papertex.contexts.templating.tex_format import TexFormatter


def extract_content(name: str, node: Node, formatter: TexFormatter) -> str:
    """Spacing command, trimmed inner content, then figure label."""
    return (
        formatter.vspace(Node(name))
        + formatter.fragment(node).strip()
        + formatter.label(node, "fig")
    )


def extract_node(node: Node, formatter: TexFormatter) -> Optional[Tuple[str, str]]:
    """
    Classify a top-level node and render its block content.

    Args:
        node: Direct child of the document root
        formatter: Formatter for the current document

    Returns:
        (block name, content) for extractable nodes, otherwise None
    """
    name = block_name(node)
    if name is None:
        return None
    if name == "preamble":
        # Custom preamble is already LaTeX
        return name, text_content(node)
    return name, extract_content(name, node, formatter)


def extract_blocks(root: Node, formatter: TexFormatter) -> Dict[str, str]:
    """Named blocks for the template; repeated names concatenate in document order."""
    blocks: Dict[str, str] = {}
    for node in get_children(root):
        extract = extract_node(node, formatter)
        if extract:
            name, content = extract
            blocks[name] = blocks.get(name, "") + content
    return blocks
