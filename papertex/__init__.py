"""
papertex: compile parsed article trees to LaTeX and PDF.

Contexts:
- document: tree model, metadata and citation records
- templating: LaTeX formatting, block extraction, template packages
- rendering: output pipeline and LaTeX toolchain driver
"""

__version__ = "0.1.0"
