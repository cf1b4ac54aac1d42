"""
LaTeX output pipeline.

Turns one document tree into a LaTeX source (and optionally a PDF):
format the tree, extract template blocks, resolve places, render the
template package, write files, then typeset.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from loguru import logger as default_logger

from papertex.contexts.document.ast import Node
from papertex.contexts.document.metadata import Citations, Metadata
from papertex.contexts.rendering.compiler import TypesetError, run_latex
from papertex.contexts.rendering.logger import CONTEXT_PREFIX, _log_success
from papertex.contexts.rendering.options import CompileOptions
from papertex.contexts.templating.places import resolve_places
from papertex.contexts.templating.render import build_render_data, emit_files, render_template
from papertex.contexts.templating.template_resolver import resolve_template
from papertex.contexts.templating.tex_format import TexFormatConfig, TexFormatter, index_labels
from papertex.utils.fs import copy, mkdirp


@dataclass
class CompileContext:
    """
    Per-document inputs besides the tree.

    Attributes:
        input_file: Source document path; its stem names every output file
        output_dir: Final output directory
        input_dir: Directory of the source document (default: input_file's parent)
        temp_dir: Scratch directory used as working directory when typesetting
        metadata: Article metadata
        citations: Citation bundle
        logger: loguru logger for absorbed failures
    """

    input_file: Path
    output_dir: Path
    input_dir: Optional[Path] = None
    temp_dir: Optional[Path] = None
    metadata: Metadata = field(default_factory=Metadata)
    citations: Optional[Citations] = None
    logger: Any = default_logger

    def __post_init__(self):
        self.input_file = Path(self.input_file)
        self.output_dir = Path(self.output_dir)
        self.input_dir = Path(self.input_dir) if self.input_dir else self.input_file.parent
        if self.temp_dir is not None:
            self.temp_dir = Path(self.temp_dir)

    @property
    def article_name(self) -> str:
        return self.input_file.stem


def working_dir(context: CompileContext, options: CompileOptions) -> Path:
    """Explicit latex_dir, else <temp_dir>/latex when typesetting, else <output_dir>/latex."""
    if options.latex_dir is not None:
        return options.latex_dir
    base = context.temp_dir if options.pdf and context.temp_dir is not None else context.output_dir
    return base / "latex"


async def typeset(
    latex_dir: Path, output_dir: Path, article_name: str, bibtex: bool, verbose: bool = False
) -> Path:
    """
    Compile the written source and copy the PDF to the output directory.

    Returns:
        Path of the copied PDF

    Raises:
        TypesetError: If the compiler did not produce a PDF
    """
    result = await run_latex(latex_dir, article_name, bibtex=bibtex, verbose=verbose)
    if not result.success:
        raise TypesetError(f"LaTeX compilation failed for {article_name}.tex", result.errors)

    output_pdf = output_dir / f"{article_name}.pdf"
    if result.pdf_path.resolve() != output_pdf.resolve():
        await copy(result.pdf_path, output_pdf)
    _log_success(f"PDF saved to: {output_pdf}")
    return output_pdf


async def output_latex(
    root: Node,
    context: CompileContext,
    options: Optional[CompileOptions] = None,
    verbose: bool = False,
) -> Optional[Path]:
    """
    Generate LaTeX output for a document.

    Args:
        root: Document tree root
        context: Inputs, output locations and logger
        options: Compile options (defaults when None)
        verbose: Log full compiler output

    Returns:
        - options.pdf False: the working directory holding the LaTeX source
        - PDF typeset: path of the PDF in the output directory
        - PDF requested but compilation failed: None (error logged, sources kept)

    Raises:
        TemplateResolutionError: If the template package cannot be found
        TemplateRenderError: If the template fails to render
    """
    options = options or CompileOptions()
    article_name = context.article_name
    latex_dir = working_dir(context, options)
    citations = context.citations
    bibtex = citations is not None and citations.has_bibliography

    await asyncio.gather(mkdirp(context.output_dir), mkdirp(latex_dir))

    formatter = TexFormatter(
        TexFormatConfig.create(
            places=resolve_places(root),
            references=citations.reference_keys() if citations else (),
            vspace=options.vspace,
            labels=index_labels(root),
        )
    )

    data = build_render_data(
        root,
        formatter,
        context.metadata,
        citations,
        article_name,
        latex_dir,
        context.input_dir,
    )

    package = resolve_template(options.template)
    source = render_template(package, data, options.tags)

    await emit_files(
        latex_dir,
        article_name,
        source,
        package,
        bibliography=formatter.bibtex("\n\n".join(citations.bibtex)) if bibtex else None,
    )

    if not options.pdf:
        return latex_dir

    try:
        context.logger.debug(f"{CONTEXT_PREFIX} Running LaTeX for {article_name}.tex")
        return await typeset(latex_dir, context.output_dir, article_name, bibtex, verbose=verbose)
    except (TypesetError, OSError) as err:
        context.logger.error(f"{CONTEXT_PREFIX} Compiling LaTeX PDF failed for {article_name}: {err}")
        return None
