"""
Rendering Context

Responsibilities:
- Orchestrates LaTeX output for one document
- Compiles LaTeX to PDF with the external toolchain
- Absorbs and logs compilation failures

Owns: LaTeX compilation, PDF generation, output management
Never: Modifies template content
"""

from papertex.contexts.rendering.compiler import CompilationResult, TypesetError, run_latex
from papertex.contexts.rendering.options import CompileOptions, load_options, options_from_mapping
from papertex.contexts.rendering.pipeline import CompileContext, output_latex, typeset

__all__ = [
    "CompilationResult",
    "CompileContext",
    "CompileOptions",
    "TypesetError",
    "load_options",
    "options_from_mapping",
    "output_latex",
    "run_latex",
    "typeset",
]
