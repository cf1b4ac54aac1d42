"""
Template package resolution.

A template package is a directory holding a ``template.yaml`` manifest, the
primary template file it names, and optional auxiliary files copied next to
the generated source::

    template: article.tex
    files:
      - styles/custom.sty
      - logo.pdf

Lookup tries the id as a directory relative to the working directory first,
then the built-in templates shipped with papertex.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException
from yaml import YAMLError

from papertex.contexts.templating.exceptions import InvalidManifestError, TemplateResolutionError
from papertex.contexts.templating.logger import _log_debug, log_template_resolved

load_dotenv()

MANIFEST_FILE = "template.yaml"
BUILTIN_TEMPLATES_PATH = Path(
    os.getenv("PAPERTEX_TEMPLATES_PATH", Path(__file__).resolve().parents[2] / "latex_templates")
)


@dataclass(frozen=True)
class TemplatePackage:
    """
    Resolved template package.

    Attributes:
        dir: Package directory
        template: Primary template file name, relative to dir
        files: Auxiliary files, relative to dir
    """

    dir: Path
    template: str
    files: List[str] = field(default_factory=list)

    @property
    def template_path(self) -> Path:
        return self.dir / self.template


def load_template(template_dir: Path) -> TemplatePackage:
    """
    Load a template package from its manifest.

    Args:
        template_dir: Directory containing template.yaml

    Returns:
        TemplatePackage for the directory

    Raises:
        FileNotFoundError: If the manifest or primary template file is missing
        InvalidManifestError: If the manifest cannot be parsed or lacks "template"
    """
    template_dir = Path(template_dir)
    manifest_path = template_dir / MANIFEST_FILE
    if not manifest_path.is_file():
        raise FileNotFoundError(f"Template manifest not found: {manifest_path}")

    try:
        manifest = OmegaConf.to_container(OmegaConf.load(manifest_path), resolve=True)
    except (OmegaConfBaseException, YAMLError) as e:
        raise InvalidManifestError(f"Unparsable template manifest {manifest_path}: {e}") from e

    if not isinstance(manifest, dict) or not manifest.get("template"):
        raise InvalidManifestError(f"Template manifest {manifest_path} must declare 'template'")

    package = TemplatePackage(
        dir=template_dir,
        template=str(manifest["template"]),
        files=[str(f) for f in manifest.get("files") or []],
    )
    if not package.template_path.is_file():
        raise FileNotFoundError(f"Template file not found: {package.template_path}")
    return package


def resolve_template(
    template_id: str,
    base_dir: Optional[Path] = None,
    builtin_dir: Optional[Path] = None,
) -> TemplatePackage:
    """
    Resolve a template id to a package, falling back to built-in templates.

    Args:
        template_id: Template directory name or relative path (e.g. "article")
        base_dir: Directory for the local lookup (default: current directory)
        builtin_dir: Built-in templates root (default: BUILTIN_TEMPLATES_PATH)

    Returns:
        Loaded TemplatePackage

    Raises:
        TemplateResolutionError: If neither location holds a valid package
    """
    local_dir = Path(base_dir or Path.cwd()) / template_id
    fallback_dir = Path(builtin_dir or BUILTIN_TEMPLATES_PATH) / template_id

    try:
        package = load_template(local_dir)
        log_template_resolved(template_id, package.dir, fallback=False)
        return package
    except (FileNotFoundError, InvalidManifestError) as e:
        _log_debug(f"Local template lookup failed, trying built-in: {e}")

    try:
        package = load_template(fallback_dir)
    except (FileNotFoundError, InvalidManifestError) as e:
        raise TemplateResolutionError(
            f"Template '{template_id}' could not be resolved",
            template_id=template_id,
            searched=[local_dir, fallback_dir],
            original_error=e,
        ) from e

    log_template_resolved(template_id, package.dir, fallback=True)
    return package


def list_builtin_templates(builtin_dir: Optional[Path] = None) -> List[str]:
    """Names of built-in template packages with a manifest."""
    root = Path(builtin_dir or BUILTIN_TEMPLATES_PATH)
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if (p / MANIFEST_FILE).is_file())
