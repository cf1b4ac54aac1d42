"""
Article metadata and citation bundle records.

Both records arrive alongside the document tree. Fields are optional;
fallback values are applied later by the templating context
(see papertex.contexts.templating.defaults).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from papertex.contexts.document.ast import Node, node_from_dict
from papertex.contexts.document.exceptions import InvalidDocumentError

# Metadata text fields may be plain strings or formatted document fragments
MetaText = Union[str, Node, None]


@dataclass
class Author:
    """Article author with optional affiliation details."""

    name: str
    affiliation: Optional[str] = None
    email: Optional[str] = None
    org: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "Author":
        if isinstance(value, Author):
            return value
        if isinstance(value, str):
            return cls(name=value)
        if isinstance(value, Mapping):
            if not value.get("name"):
                raise InvalidDocumentError(f"Author entry is missing a name: {dict(value)!r}")
            return cls(
                name=str(value["name"]),
                affiliation=value.get("affiliation"),
                email=value.get("email"),
                org=value.get("org"),
            )
        raise InvalidDocumentError(f"Unsupported author entry: {value!r}")


@dataclass
class Metadata:
    """
    Flat article metadata record.

    Attributes:
        title: Article title
        title_short: Running-head title
        author: Ordered author list (None when absent)
        author_short: Running-head author string
        date: Publication date text
        keywords: Keyword list
    """

    title: MetaText = None
    title_short: MetaText = None
    author: Optional[List[Author]] = None
    author_short: MetaText = None
    date: MetaText = None
    keywords: Optional[List[str]] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Metadata":
        """
        Build metadata from a loaded YAML/JSON mapping.

        Text fields given as mappings are treated as serialized document
        fragments. A single author string or mapping is accepted as a
        one-element author list.
        """
        if not data:
            return cls()

        def meta_text(key: str) -> MetaText:
            value = data.get(key)
            if isinstance(value, Mapping):
                return node_from_dict(value)
            return str(value) if value is not None else None

        authors = data.get("author")
        if authors is not None and not isinstance(authors, (list, tuple)):
            authors = [authors]

        keywords = data.get("keywords")
        if isinstance(keywords, str):
            keywords = [k.strip() for k in keywords.split(",") if k.strip()]

        return cls(
            title=meta_text("title"),
            title_short=meta_text("title_short"),
            author=[Author.from_value(a) for a in authors] if authors is not None else None,
            author_short=meta_text("author_short"),
            date=meta_text("date"),
            keywords=list(keywords) if keywords is not None else None,
        )


@dataclass
class Citations:
    """
    Citation bundle.

    Attributes:
        references: Known citation keys, as strings or mappings with an "id"
        bibtex: BibTeX entries, one string per entry
    """

    references: List[Union[str, Dict[str, Any]]] = field(default_factory=list)
    bibtex: List[str] = field(default_factory=list)

    @property
    def has_bibliography(self) -> bool:
        return len(self.bibtex) > 0

    def reference_keys(self) -> List[str]:
        keys = []
        for ref in self.references:
            if isinstance(ref, Mapping):
                if ref.get("id"):
                    keys.append(str(ref["id"]))
            else:
                keys.append(str(ref))
        return keys
