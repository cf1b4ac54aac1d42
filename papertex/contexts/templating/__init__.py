r"""
Templating Context

Responsibilities:
- Converts document trees to LaTeX text (escaping, commands, labels)
- Extracts abstract, acknowledgments, teaser and preamble blocks
- Resolves \place{} directives to figures
- Locates template packages and renders them with Jinja2
- Writes the LaTeX source, bibliography and auxiliary files

Owns: LaTeX text representation, template packages, template data
Never: Runs the LaTeX toolchain
"""

from papertex.contexts.templating.exceptions import (
    InvalidManifestError,
    TemplateRenderError,
    TemplateResolutionError,
)
from papertex.contexts.templating.extractor import extract_blocks, extract_node
from papertex.contexts.templating.places import PlaceMap, parse_place_directive, resolve_places
from papertex.contexts.templating.render import (
    RenderData,
    build_render_data,
    emit_files,
    render_template,
)
from papertex.contexts.templating.template_resolver import (
    TemplatePackage,
    list_builtin_templates,
    load_template,
    resolve_template,
)
from papertex.contexts.templating.tex_format import (
    TexFormatConfig,
    TexFormatter,
    escape,
    index_labels,
    unescape,
)

__all__ = [
    # Formatting
    "TexFormatConfig",
    "TexFormatter",
    "escape",
    "index_labels",
    "unescape",
    # Tree passes
    "extract_blocks",
    "extract_node",
    "PlaceMap",
    "parse_place_directive",
    "resolve_places",
    # Templates
    "TemplatePackage",
    "list_builtin_templates",
    "load_template",
    "resolve_template",
    "RenderData",
    "build_render_data",
    "render_template",
    "emit_files",
    # Errors
    "InvalidManifestError",
    "TemplateRenderError",
    "TemplateResolutionError",
]
