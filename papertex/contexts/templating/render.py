"""
Template rendering and file emission.

Marshals metadata and formatted content into RenderData, renders the
template package with Jinja2, and writes the LaTeX source, bibliography and
auxiliary template files into the working directory.
"""

import asyncio
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from papertex.contexts.document.ast import Node
from papertex.contexts.document.metadata import Author, Citations, Metadata
from papertex.contexts.templating.defaults import (
    DEFAULT_TAGS,
    default_authors,
    default_date,
    default_title,
    short_form,
)
from papertex.contexts.templating.exceptions import TemplateRenderError
from papertex.contexts.templating.extractor import extract_blocks
from papertex.contexts.templating.logger import _log_error, _log_success
from papertex.contexts.templating.template_resolver import TemplatePackage
from papertex.contexts.templating.tex_format import TexFormatter
from papertex.utils.fs import copy, write_file


@dataclass
class RenderData:
    """
    Per-document data merged into the template.

    Absent optional values are None so templates can test them with
    ``<%% if name %%>``.
    """

    date: str
    title: str
    author: List[Dict[str, Optional[str]]]
    author_first: Dict[str, Optional[str]]
    author_rest: List[Dict[str, Optional[str]]]
    author_names: str
    preamble: str
    content: str
    title_short: Optional[str] = None
    author_short: Optional[str] = None
    bibtex: Optional[str] = None
    keywords: Optional[str] = None
    abstract: Optional[str] = None
    acknowledgments: Optional[str] = None
    teaser: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def graphics_path(latex_dir: Path, input_dir: Path) -> str:
    """\\graphicspath line pointing from the working directory to the input directory."""
    relative = Path(os.path.relpath(Path(input_dir).resolve(), Path(latex_dir).resolve())).as_posix()
    return f"\\graphicspath{{{{{relative}/}}}}\n"


def author_fields(author: Author, formatter: TexFormatter) -> Dict[str, Optional[str]]:
    return {
        key: formatter.string(value) if value is not None else None
        for key, value in asdict(author).items()
    }


def build_render_data(
    root: Node,
    formatter: TexFormatter,
    metadata: Optional[Metadata],
    citations: Optional[Citations],
    article_name: str,
    latex_dir: Path,
    input_dir: Path,
) -> RenderData:
    """
    Marshal one document into template data.

    Args:
        root: Document tree root
        formatter: Formatter configured for this document
        metadata: Article metadata (fallbacks applied for missing fields)
        citations: Citation bundle, or None
        article_name: Input file stem, used for the bibliography file name
        latex_dir: Working directory the source is written to
        input_dir: Directory of the input document (for \\graphicspath)

    Returns:
        RenderData ready for render_template()
    """
    metadata = metadata or Metadata()
    authors = [author_fields(a, formatter) for a in default_authors(metadata.author)]
    has_bibliography = citations is not None and citations.has_bibliography

    data = RenderData(
        date=default_date(formatter.tex(metadata.date)),
        title=default_title(formatter.tex(metadata.title)),
        author=authors,
        author_first=authors[0],
        author_rest=authors[1:],
        author_names=", ".join(a["name"] for a in authors),
        title_short=short_form(formatter.tex(metadata.title_short)),
        author_short=short_form(formatter.tex(metadata.author_short)),
        bibtex=f"{article_name}.bib" if has_bibliography else None,
        keywords=", ".join(formatter.string(k) for k in metadata.keywords) if metadata.keywords else None,
        preamble=graphics_path(latex_dir, input_dir),
        content=formatter.body(root).strip(),
    )

    for name, content in extract_blocks(root, formatter).items():
        if name == "preamble":
            data.preamble += content
        else:
            setattr(data, name, content)

    return data


def create_environment(template_dir: Path, tags: Sequence[str] = DEFAULT_TAGS) -> Environment:
    """
    Jinja2 environment for LaTeX templates.

    Variables use the configurable tag pair (default << var >>); blocks use
    <%% block %%> and comments <# comment #>. Output is never escaped since
    every value is already LaTeX.
    """
    start, end = tags
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        undefined=StrictUndefined,
        autoescape=False,
        variable_start_string=start,
        variable_end_string=end,
        block_start_string="<%%",
        block_end_string="%%>",
        comment_start_string="<#",
        comment_end_string="#>",
        # Preserve whitespace (important for LaTeX)
        trim_blocks=False,
        lstrip_blocks=False,
        keep_trailing_newline=True,
    )


def render_template(
    package: TemplatePackage, data: RenderData, tags: Sequence[str] = DEFAULT_TAGS
) -> str:
    """
    Render the package's primary template with document data.

    Raises:
        TemplateRenderError: If Jinja2 fails to load or render the template
    """
    env = create_environment(package.dir, tags)
    try:
        template = env.get_template(package.template)
        return template.render(data.as_dict())
    except TemplateError as e:
        _log_error(f"Rendering {package.template_path} failed: {e}")
        raise TemplateRenderError(
            "Failed to render LaTeX template", template_path=package.template_path, original_error=e
        ) from e


async def emit_files(
    latex_dir: Path,
    article_name: str,
    source: str,
    package: TemplatePackage,
    bibliography: Optional[str] = None,
) -> List[Path]:
    """
    Write source, bibliography and auxiliary template files concurrently.

    Auxiliary files are copied under their base names, flattening any
    directory structure inside the template package.

    Returns:
        Paths written, source first
    """
    writes = [write_file(latex_dir / f"{article_name}.tex", source)]
    if bibliography:
        writes.append(write_file(latex_dir / f"{article_name}.bib", bibliography))
    writes.extend(copy(package.dir / f, latex_dir / Path(f).name) for f in package.files)

    written = await asyncio.gather(*writes)
    paths = [p for p in written if p is not None]
    _log_success(f"Wrote {len(paths)} files to {latex_dir}")
    return paths
