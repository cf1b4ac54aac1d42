#!/usr/bin/env python3
"""
Article Compilation CLI

Compiles a parsed article (JSON document tree) to LaTeX and PDF.

Commands:
    compile   - Generate LaTeX source and, by default, a typeset PDF
    templates - List built-in template packages

Examples:\n

    compile_article.py compile paper.json                        # LaTeX + PDF into ./output

    compile_article.py compile paper.json --no-pdf -o build      # LaTeX source only

    compile_article.py compile paper.json -m meta.yaml --bib refs.bib

    compile_article.py compile paper.json --options latex.yaml   # Options file
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Optional

import typer
from omegaconf import OmegaConf
from typing_extensions import Annotated

from papertex.contexts.document import Citations, InvalidDocumentError, Metadata, node_from_dict
from papertex.contexts.rendering import (
    CompileContext,
    load_options,
    options_from_mapping,
    output_latex,
)
from papertex.contexts.rendering.compiler import BIBTEX_COMPILER, LATEX_COMPILER
from papertex.contexts.rendering.logger import setup_rendering_logger
from papertex.contexts.templating import TemplateRenderError, TemplateResolutionError
from papertex.contexts.templating.template_resolver import list_builtin_templates

app = typer.Typer(
    help="Compile parsed article trees to LaTeX sources and PDFs",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def read_bibtex_entries(bib_file: Path) -> list:
    """Split a .bib file into entries on blank lines."""
    text = bib_file.read_text(encoding="utf-8")
    return [entry.strip() for entry in re.split(r"\n\s*\n", text) if entry.strip()]


@app.command("compile")
def compile_command(
    ast_file: Annotated[
        Path,
        typer.Argument(help="Document tree as JSON", exists=True, dir_okay=False),
    ],
    metadata_file: Annotated[
        Optional[Path],
        typer.Option("--metadata", "-m", help="Article metadata (YAML or JSON)", exists=True),
    ] = None,
    bib_file: Annotated[
        Optional[Path],
        typer.Option("--bib", "-b", help="BibTeX bibliography", exists=True),
    ] = None,
    output_dir: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output directory"),
    ] = Path("output"),
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Template package id or directory"),
    ] = None,
    options_file: Annotated[
        Optional[Path],
        typer.Option("--options", help="Compile options file (YAML or JSON)", exists=True),
    ] = None,
    no_pdf: Annotated[
        bool,
        typer.Option("--no-pdf", help="Write the LaTeX source only"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation output"),
    ] = False,
):
    """
    Compile an article to LaTeX and PDF.

    Exits with code 1 when the template cannot be rendered or when a
    requested PDF was not produced (the LaTeX source is still written).
    """
    setup_rendering_logger(
        verbose=verbose,
        extra_provenance={"LaTeX compiler": LATEX_COMPILER, "BibTeX compiler": BIBTEX_COMPILER},
    )

    overrides = {"template": template, "pdf": False if no_pdf else None}
    try:
        if options_file:
            options = load_options(options_file, overrides)
        else:
            options = options_from_mapping({k: v for k, v in overrides.items() if v is not None})

        root = node_from_dict(json.loads(ast_file.read_text(encoding="utf-8")))
        metadata = Metadata.from_mapping(
            OmegaConf.to_container(OmegaConf.load(metadata_file)) if metadata_file else None
        )
    except (ValueError, InvalidDocumentError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    citations = Citations(bibtex=read_bibtex_entries(bib_file)) if bib_file else None

    typer.secho(f"\nCompiling: {ast_file.name}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Template: {options.template}")
    typer.echo("")

    # No temp dir: sources stay under <output>/latex for inspection after a failed PDF run
    context = CompileContext(
        input_file=ast_file.resolve(),
        output_dir=output_dir.resolve(),
        metadata=metadata,
        citations=citations,
    )
    try:
        result = asyncio.run(output_latex(root, context, options, verbose=verbose))
    except (TemplateResolutionError, TemplateRenderError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    if result is None:
        typer.secho("✗ PDF compilation failed", fg=typer.colors.RED, bold=True)
        typer.echo(f"  LaTeX source: {output_dir / 'latex'}")
        raise typer.Exit(code=1)

    if options.pdf:
        typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  PDF: {result}")
    else:
        typer.secho("✓ LaTeX source written", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Directory: {result}")
    typer.echo("")


@app.command("templates")
def templates_command():
    """List built-in template packages."""
    for name in list_builtin_templates():
        typer.echo(name)


if __name__ == "__main__":
    app()
