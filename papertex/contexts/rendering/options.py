"""
Compile Options

Options for one LaTeX output run, loadable from a YAML/JSON file and merged
over the defaults with OmegaConf.

Example options file:

    template: article
    tags: ["<<", ">>"]
    pdf: true
    latexDir: build/latex
    vspace:
      abstract: -4pt
      figure: -6pt
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from omegaconf import OmegaConf

from papertex.contexts.templating.defaults import DEFAULT_TAGS, DEFAULT_TEMPLATE

# camelCase keys accepted for compatibility with the parser's option files
OPTION_ALIASES = {"latexDir": "latex_dir"}


@dataclass(frozen=True)
class CompileOptions:
    """
    Options for output_latex().

    Attributes:
        template: Template package id
        tags: Template variable delimiter pair
        pdf: Typeset a PDF (False stops after writing the LaTeX source)
        latex_dir: Explicit working directory (default: <temp or output dir>/latex)
        vspace: Node/block name -> spacing command
    """

    template: str = DEFAULT_TEMPLATE
    tags: Tuple[str, str] = DEFAULT_TAGS
    pdf: bool = True
    latex_dir: Optional[Path] = None
    vspace: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.tags) != 2 or not all(self.tags):
            raise ValueError(f"tags must be a pair of non-empty delimiters, got: {self.tags!r}")
        object.__setattr__(self, "tags", tuple(self.tags))
        if self.latex_dir is not None:
            object.__setattr__(self, "latex_dir", Path(self.latex_dir))


def options_from_mapping(data: Optional[Mapping[str, Any]]) -> CompileOptions:
    """
    Build CompileOptions from a plain mapping.

    Raises:
        ValueError: If the mapping holds unknown keys
    """
    if not data:
        return CompileOptions()

    normalized = {OPTION_ALIASES.get(key, key): value for key, value in data.items()}
    known = set(CompileOptions.__dataclass_fields__)
    unknown = sorted(set(normalized) - known)
    if unknown:
        raise ValueError(f"Unknown compile options: {unknown}. Valid options: {sorted(known)}")

    if normalized.get("vspace") is not None:
        normalized["vspace"] = {str(k): str(v) for k, v in dict(normalized["vspace"]).items()}
    return CompileOptions(**normalized)


def load_options(config_path: Path, overrides: Optional[Mapping[str, Any]] = None) -> CompileOptions:
    """
    Load options from a YAML/JSON file, with optional overrides on top.

    Args:
        config_path: Options file
        overrides: Values that take precedence over the file (None values ignored)

    Returns:
        CompileOptions
    """
    config = OmegaConf.load(config_path)
    if overrides:
        config = OmegaConf.merge(
            config, OmegaConf.create({k: v for k, v in overrides.items() if v is not None})
        )
    return options_from_mapping(OmegaConf.to_container(config, resolve=True))
