"""
Document tree model.

Nodes are produced by an external parser and consumed read-only by the LaTeX
output pipeline. A node has a semantic name (e.g. "figure", "abstract",
"raw"), a property mapping, a list of style classes, and either ordered
children or a single literal value.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

from papertex.contexts.document.exceptions import InvalidDocumentError

TEXT_NODE = "text"
RAW_NODE = "raw"


@dataclass
class Node:
    """
    Single document tree node.

    Attributes:
        name: Semantic role of the node (e.g. "p", "figure", "raw")
        properties: Key-value properties (e.g. {"id": "fig1", "format": "tex"})
        classes: Style classes in document order (e.g. ["teaser"])
        children: Ordered child nodes
        value: Literal value for text and raw leaves
    """

    name: str
    properties: Dict[str, Any] = field(default_factory=dict)
    classes: List[str] = field(default_factory=list)
    children: List["Node"] = field(default_factory=list)
    value: Optional[str] = None

    def __repr__(self) -> str:
        node_id = self.properties.get("id")
        suffix = f" id={node_id!r}" if node_id is not None else ""
        return f"<Node {self.name}{suffix}>"


def text(value: str) -> Node:
    """Create a text leaf."""
    return Node(TEXT_NODE, value=value)


def get_children(node: Optional[Node]) -> List[Node]:
    return node.children if node is not None else []


def get_property(node: Node, key: str, default: Any = None) -> Any:
    return node.properties.get(key, default)


def has_class(node: Node, class_name: str) -> bool:
    return class_name in node.classes


def text_content(node: Optional[Node]) -> str:
    """
    Literal text of a leaf, or the concatenated text of its descendants.

    Raw nodes may carry their text either as ``value`` or as a single text
    child; both forms return the same string.
    """
    if node is None:
        return ""
    if node.value is not None:
        return node.value
    return "".join(text_content(child) for child in node.children)


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield every node of the tree in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _unwrap_property(value: Any) -> Any:
    # Serialized trees wrap property values as {"type": "value", "value": ...}
    if isinstance(value, Mapping) and value.get("type") == "value":
        return value.get("value")
    return value


def node_from_dict(data: Any) -> Node:
    """
    Build a Node tree from its serialized (JSON-compatible) form.

    Accepts both the parser's wire form::

        {"type": "component", "name": "p", "properties": {"id": {"type": "value", "value": "a"}},
         "children": [{"type": "textnode", "value": "Hello"}]}

    and a plain form with ``name``, ``properties``, ``classes``, ``children``
    and ``value`` keys. Bare strings become text leaves. A ``class`` property
    holding a whitespace-separated string is split into classes.

    Args:
        data: Serialized node (dict or string)

    Returns:
        Root Node of the converted tree

    Raises:
        InvalidDocumentError: If a node has no name or an unsupported shape
    """
    if isinstance(data, str):
        return text(data)
    if not isinstance(data, Mapping):
        raise InvalidDocumentError(f"Cannot convert {type(data).__name__} to a document node")

    if data.get("type") == "textnode":
        return text(str(data.get("value", "")))

    name = data.get("name")
    if not name:
        raise InvalidDocumentError(f"Document node is missing a name: {dict(data)!r}")

    properties = {key: _unwrap_property(value) for key, value in (data.get("properties") or {}).items()}

    classes = list(data.get("classes") or [])
    class_attr = properties.pop("class", None)
    if isinstance(class_attr, str):
        classes.extend(c for c in class_attr.split() if c not in classes)

    value = data.get("value")
    children = [node_from_dict(child) for child in data.get("children") or []]

    return Node(
        name=name,
        properties=properties,
        classes=classes,
        children=children,
        value=str(value) if value is not None else None,
    )
