"""
Document Context

Responsibilities:
- Represents the parsed article tree handed over by the external parser
- Loads serialized trees, metadata and citation bundles

Owns: Node model, tree traversal helpers, metadata and citation records
Never: Produces output markup
"""

from papertex.contexts.document.ast import (
    Node,
    get_children,
    get_property,
    has_class,
    iter_nodes,
    node_from_dict,
    text,
    text_content,
)
from papertex.contexts.document.exceptions import InvalidDocumentError
from papertex.contexts.document.metadata import Author, Citations, Metadata

__all__ = [
    # Tree model
    "Node",
    "node_from_dict",
    "text",
    # Traversal helpers
    "get_children",
    "get_property",
    "has_class",
    "iter_nodes",
    "text_content",
    # Records
    "Author",
    "Citations",
    "Metadata",
    "InvalidDocumentError",
]
