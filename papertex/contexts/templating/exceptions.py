"""Custom exceptions for templating context with template references."""

from pathlib import Path
from typing import List, Optional


class TemplateResolutionError(Exception):
    """
    Exception raised when no template package can be loaded for an id.

    Attributes:
        message: Error description
        template_id: Requested template identifier
        searched: Directories tried, in lookup order
        original_error: The error from the last lookup attempt
    """

    def __init__(
        self,
        message: str,
        template_id: Optional[str] = None,
        searched: Optional[List[Path]] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.template_id = template_id
        self.searched = searched or []
        self.original_error = original_error

        parts = [message]

        if self.searched:
            parts.append("\nSearched:")
            parts.extend(f"  - {path}" for path in self.searched)

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))


class TemplateRenderError(Exception):
    """
    Exception raised when template rendering fails.

    Attributes:
        message: Error description
        template_path: Path to the template file
        original_error: The original Jinja2 error
    """

    def __init__(
        self,
        message: str,
        template_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.template_path = template_path
        self.original_error = original_error

        parts = [message]

        if template_path:
            parts.append(f"\nTemplate: {template_path}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))


class InvalidManifestError(ValueError):
    """
    Exception raised when a template manifest is unparsable or lacks the
    primary template file name.
    """

    pass
