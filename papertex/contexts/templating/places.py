"""
Place resolution for deferred figure placement.

A raw LaTeX node whose text starts with ``\\place{<id>}`` claims the figure
with that id, so the figure is typeset at the directive's location. The
tree is never modified: directives are recorded in a side table keyed by
node identity.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from papertex.contexts.document.ast import RAW_NODE, Node, get_property, iter_nodes, text_content

PLACE_COMMAND = "\\place{"
TEX_FORMATS = ("tex", "latex")


@dataclass(frozen=True)
class PlaceMap:
    """
    Result of place resolution.

    Attributes:
        places: Place id -> claimed figure node, or None if no figure matched
        directives: id(raw node) -> place id, for every directive node
    """

    places: Dict[str, Optional[Node]] = field(default_factory=dict)
    directives: Dict[int, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.places)

    def __contains__(self, place_id: str) -> bool:
        return place_id in self.places

    def get(self, place_id: str) -> Optional[Node]:
        return self.places.get(place_id)

    def directive_for(self, node: Node) -> Optional[str]:
        """Place id claimed by a raw directive node, if any."""
        return self.directives.get(id(node))

    def is_claimed(self, figure: Node) -> bool:
        """True if this exact figure node is bound to some place."""
        figure_id = get_property(figure, "id")
        return figure_id is not None and self.places.get(figure_id) is figure


def parse_place_directive(text: str) -> Optional[str]:
    """
    Extract the place id from raw LaTeX text.

    Returns None when the text is not a place directive or has no closing
    brace.

    Examples:
        >>> parse_place_directive("\\\\place{figA}")
        'figA'
        >>> parse_place_directive("\\\\place{figA") is None
        True
    """
    if not text.startswith(PLACE_COMMAND):
        return None
    end = text.find("}", len(PLACE_COMMAND))
    if end < 0:
        return None
    return text[len(PLACE_COMMAND):end]


def is_tex_raw(node: Node) -> bool:
    return node.name == RAW_NODE and get_property(node, "format") in TEX_FORMATS


def resolve_places(root: Node) -> PlaceMap:
    """
    Link place directives to figure nodes with a two-pass scan.

    Pass 1 collects place ids from raw LaTeX directives anywhere in the tree.
    Pass 2, run only when pass 1 found something, binds figures whose id
    was collected. Ids without a matching figure stay bound to None.

    Args:
        root: Document tree root

    Returns:
        PlaceMap for the tree (empty when no directive exists)
    """
    places: Dict[str, Optional[Node]] = {}
    directives: Dict[int, str] = {}

    for node in iter_nodes(root):
        if not is_tex_raw(node):
            continue
        place_id = parse_place_directive(text_content(node))
        if place_id is not None:
            directives[id(node)] = place_id
            places[place_id] = None

    if places:
        for node in iter_nodes(root):
            if node.name == "figure":
                figure_id = get_property(node, "id")
                if figure_id and figure_id in places:
                    places[figure_id] = node

    return PlaceMap(places=places, directives=directives)
