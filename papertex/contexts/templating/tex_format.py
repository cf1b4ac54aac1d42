"""
LaTeX Text Formatter

Converts document tree fragments into LaTeX text. All scalar text is
escaped here, so templates must render values without a second escaping
pass.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional

from papertex.contexts.document.ast import (
    Node,
    get_property,
    has_class,
    iter_nodes,
    text_content,
)
from papertex.contexts.templating.defaults import (
    PREAMBLE_NODE,
    REFERENCE_PREFIXES,
    STYLE_CLASSES,
    block_name,
)
from papertex.contexts.templating.logger import _log_warning
from papertex.contexts.templating.places import PLACE_COMMAND, PlaceMap, is_tex_raw

# Characters with special meaning in LaTeX text mode
ESCAPES = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "#": r"\#",
    "$": r"\$",
    "%": r"\%",
    "&": r"\&",
    "_": r"\_",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
UNESCAPES = {escaped: char for char, escaped in ESCAPES.items()}

ESCAPE_PATTERN = re.compile("[" + re.escape("".join(ESCAPES)) + "]")
UNESCAPE_PATTERN = re.compile(
    "|".join(re.escape(seq) for seq in sorted(UNESCAPES, key=len, reverse=True))
)
# BibTeX entries keep their braces and commands; only bare &, % and # break them
BIBTEX_PATTERN = re.compile(r"(?<!\\)([&%#])")

HEADINGS = {
    "h1": "section",
    "h2": "subsection",
    "h3": "subsubsection",
    "h4": "paragraph",
}

INLINE_COMMANDS = {
    "em": "emph",
    "i": "emph",
    "strong": "textbf",
    "b": "textbf",
    "u": "uline",
    "s": "sout",
    "sup": "textsuperscript",
    "sub": "textsubscript",
    "code": "texttt",
    "footnote": "footnote",
    "caption": "caption",
}

# Float environments: node name -> (environment, label category)
FLOATS = {
    "figure": ("figure", "fig"),
    "table": ("table", "tbl"),
}
FLOAT_POSITION = "tbp"

# Node name -> label category for every labelled node kind
LABEL_CATEGORIES = {
    **{name: category for name, (_, category) in FLOATS.items()},
    "equation": "eqn",
    **{name: "sec" for name in HEADINGS},
}


def escape(text: str) -> str:
    """Escape every LaTeX special character in plain text."""
    return ESCAPE_PATTERN.sub(lambda m: ESCAPES[m.group(0)], text)


def unescape(text: str) -> str:
    """Inverse of escape()."""
    return UNESCAPE_PATTERN.sub(lambda m: UNESCAPES[m.group(0)], text)


def index_labels(root: Node) -> Dict[str, str]:
    """
    Map node ids to the label category the formatter emits for them.

    Lets untyped cross-references point at the qualified label, e.g.
    an h1 with id "intro" is labelled and referenced as "sec:intro".
    The first node wins when an id is repeated.
    """
    labels: Dict[str, str] = {}
    for node in iter_nodes(root):
        node_id = get_property(node, "id")
        category = LABEL_CATEGORIES.get(node.name)
        if node_id and category and node_id not in labels:
            labels[node_id] = category
    return labels


@dataclass(frozen=True)
class TexFormatConfig:
    """
    Immutable formatter configuration for one document.

    Attributes:
        prefix: Cross-reference category -> literal prefix (e.g. "fig" -> "Figure~")
        classes: Style class -> LaTeX command name
        vspace: Node name -> spacing command inserted before its content
        places: Place map for deferred figure placement
        references: Known citation keys (empty means unchecked)
        labels: Node id -> label category, for cross-references without a type
    """

    prefix: Mapping[str, str] = field(default_factory=lambda: dict(REFERENCE_PREFIXES))
    classes: Mapping[str, str] = field(default_factory=lambda: dict(STYLE_CLASSES))
    vspace: Mapping[str, str] = field(default_factory=dict)
    places: PlaceMap = field(default_factory=PlaceMap)
    references: FrozenSet[str] = frozenset()
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("prefix", "classes", "vspace", "labels"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "references", frozenset(self.references))

    @classmethod
    def create(
        cls,
        places: Optional[PlaceMap] = None,
        references: Iterable[str] = (),
        vspace: Optional[Mapping[str, str]] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> "TexFormatConfig":
        """Default tables combined with per-document data."""
        return cls(
            vspace=vspace or {},
            places=places or PlaceMap(),
            references=frozenset(references),
            labels=labels or {},
        )


class TexFormatter:
    """
    Renders document nodes and scalars to LaTeX.

    Usage:
        config = TexFormatConfig.create(places=resolve_places(root), labels=index_labels(root))
        content = TexFormatter(config).body(root).strip()
    """

    def __init__(self, config: Optional[TexFormatConfig] = None):
        self.config = config or TexFormatConfig()
        self._handlers: Dict[str, Callable[[Node], str]] = {
            "text": self._text,
            "p": self._paragraph,
            "span": self._span,
            "br": lambda node: "\\\\\n",
            "hr": lambda node: "\n\\noindent\\rule{\\linewidth}{0.4pt}\n\n",
            "link": self._link,
            "math": self._math,
            "mathblock": self._mathblock,
            "equation": self._equation,
            "codeblock": self._codeblock,
            "ul": self._list,
            "ol": self._list,
            "li": self._item,
            "quote": self._quote,
            "blockquote": self._quote,
            "image": self._image,
            "figure": self._figure,
            "table": self._figure,
            "tabular": self._tabular,
            "cross-ref": self._crossref,
            "crossref": self._crossref,
            "cite-ref": self._cite,
            "cite-list": self._cite,
            "raw": self._raw,
            PREAMBLE_NODE: self._preamble,
        }
        for name in HEADINGS:
            self._handlers[name] = self._heading
        for name in INLINE_COMMANDS:
            self._handlers[name] = self._inline

    # Public operations

    def tex(self, value: Any) -> str:
        """
        Render a node, a list of nodes, or a scalar to LaTeX.

        Returns an empty string for None, so callers can write
        ``formatter.tex(x) or fallback``.
        """
        if value is None:
            return ""
        if isinstance(value, Node):
            return self._node(value)
        if isinstance(value, (list, tuple)):
            return "".join(self.tex(item) for item in value)
        return self.string(str(value))

    def body(self, root: Node) -> str:
        """
        Main content of a document root.

        Direct children that templates receive as separate blocks (abstract,
        acknowledgments, teaser figure, preamble) are left out; the same
        nodes deeper in the tree render as ordinary content.
        """
        children = "".join(self._node(child) for child in root.children if block_name(child) is None)
        return self.vspace(root) + children

    def string(self, text: str) -> str:
        """Escape a literal string without tree traversal."""
        return escape(text)

    def bibtex(self, text: str) -> str:
        """Escape bare &, % and # in BibTeX source, leaving entry syntax intact."""
        return BIBTEX_PATTERN.sub(r"\\\1", text)

    def vspace(self, node: Node) -> str:
        """Configured spacing command for the node's name, or ''."""
        value = self.config.vspace.get(node.name)
        if not value:
            return ""
        if value.startswith("\\"):
            return f"{value}\n"
        return f"\\vspace{{{value}}}\n"

    def fragment(self, node: Node) -> str:
        """Render only the node's children."""
        return "".join(self._node(child) for child in node.children)

    def label(self, node: Node, category: str) -> str:
        node_id = get_property(node, "id")
        if not node_id:
            return ""
        return f"\\label{{{category}:{node_id}}}"

    # Dispatch

    def _node(self, node: Node) -> str:
        handler = self._handlers.get(node.name)
        if handler is None:
            return self.vspace(node) + self.fragment(node)
        if node.name in FLOATS:
            return handler(node)
        return self.vspace(node) + handler(node)

    def _text(self, node: Node) -> str:
        return self.string(node.value or "")

    def _paragraph(self, node: Node) -> str:
        content = self.fragment(node).strip()
        return f"{content}\n\n" if content else ""

    def _heading(self, node: Node) -> str:
        command = HEADINGS[node.name]
        star = "*" if has_class(node, "nonumber") else ""
        title = self.fragment(node).strip()
        return f"\n\\{command}{star}{{{title}}}{self.label(node, 'sec')}\n\n"

    def _inline(self, node: Node) -> str:
        return f"\\{INLINE_COMMANDS[node.name]}{{{self.fragment(node)}}}"

    def _span(self, node: Node) -> str:
        content = self.fragment(node)
        for class_name in node.classes:
            command = self.config.classes.get(class_name)
            if command:
                content = f"\\{command}{{{content}}}"
        return content

    def _link(self, node: Node) -> str:
        url = self.bibtex(str(get_property(node, "href", "")))
        content = self.fragment(node)
        if not content:
            return f"\\url{{{url}}}"
        return f"\\href{{{url}}}{{{content}}}"

    def _math(self, node: Node) -> str:
        return f"${text_content(node).strip()}$"

    def _mathblock(self, node: Node) -> str:
        return f"\\[\n{text_content(node).strip()}\n\\]\n"

    def _equation(self, node: Node) -> str:
        return (
            "\\begin{equation}\n"
            f"{text_content(node).strip()}\n"
            f"{self.label(node, 'eqn')}"
            "\\end{equation}\n"
        )

    def _codeblock(self, node: Node) -> str:
        return f"\\begin{{verbatim}}\n{text_content(node).rstrip()}\n\\end{{verbatim}}\n\n"

    def _list(self, node: Node) -> str:
        env = "enumerate" if node.name == "ol" else "itemize"
        return f"\\begin{{{env}}}\n{self.fragment(node)}\\end{{{env}}}\n\n"

    def _item(self, node: Node) -> str:
        return f"\\item {self.fragment(node).strip()}\n"

    def _quote(self, node: Node) -> str:
        return f"\\begin{{quote}}\n{self.fragment(node).strip()}\n\\end{{quote}}\n\n"

    def _image(self, node: Node) -> str:
        src = get_property(node, "src", "")
        return f"\\includegraphics[width=\\linewidth]{{{src}}}\n"

    def _figure(self, node: Node) -> str:
        # Claimed figures move to their place directive
        if self.config.places.is_claimed(node):
            return ""
        return self._float(node)

    def _float(self, node: Node) -> str:
        env, category = FLOATS.get(node.name, FLOATS["figure"])
        if has_class(node, "page"):
            env += "*"
        return (
            f"\\begin{{{env}}}[{FLOAT_POSITION}]\n"
            "\\centering\n"
            f"{self.vspace(node)}"
            f"{self.fragment(node).strip()}\n"
            f"{self.label(node, category)}\n"
            f"\\end{{{env}}}\n\n"
        )

    def _tabular(self, node: Node) -> str:
        rows = [child for child in node.children if child.name == "tr"]
        columns = max((len(row.children) for row in rows), default=1)
        lines = []
        for row in rows:
            cells = [self._cell(cell) for cell in row.children]
            lines.append(" & ".join(cells) + " \\\\")
            if row.children and all(cell.name == "th" for cell in row.children):
                lines.append("\\hline")
        body = "\n".join(lines)
        return f"\\begin{{tabular}}{{{'l' * columns}}}\n{body}\n\\end{{tabular}}\n"

    def _cell(self, cell: Node) -> str:
        content = self.fragment(cell).strip()
        return f"\\textbf{{{content}}}" if cell.name == "th" else content

    def _crossref(self, node: Node) -> str:
        target = get_property(node, "xref") or get_property(node, "ref")
        category = get_property(node, "type")
        if not target:
            return ""
        if target in self.config.places:
            figure = self.config.places.get(target)
            if figure is not None:
                category = "fig"
                target = get_property(figure, "id")
        category = category or self.config.labels.get(target)
        if not category:
            return f"\\ref{{{target}}}"
        prefix = self.config.prefix.get(category, "")
        return f"{prefix}\\ref{{{category}:{target}}}"

    def _cite(self, node: Node) -> str:
        if node.name == "cite-list":
            keys = [get_property(child, "key") for child in node.children if child.name == "cite-ref"]
        else:
            keys = [get_property(node, "key")]
        keys = [str(key) for key in keys if key]
        if not keys:
            return ""
        if self.config.references:
            for key in keys:
                if key not in self.config.references:
                    _log_warning(f"Citation key not found in references: {key}")
        return f"\\cite{{{','.join(keys)}}}"

    def _raw(self, node: Node) -> str:
        if not is_tex_raw(node):
            return ""
        raw = text_content(node)
        place_id = self.config.places.directive_for(node)
        if place_id is None:
            return raw
        # Markup after the directive's closing brace is kept
        rest = raw[len(PLACE_COMMAND) + len(place_id) + 1:]
        figure = self.config.places.get(place_id)
        if figure is None:
            _log_warning(f"No figure found for place directive: {place_id}")
            return rest
        return self._float(figure) + rest

    def _preamble(self, node: Node) -> str:
        # Only a top-level preamble reaches the template
        _log_warning("Ignoring latex:preamble node below the document root")
        return ""
