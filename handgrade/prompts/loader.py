from __future__ import annotations

"""Reads ``*.prompt.md`` files into renderable templates.

A prompt file opens with YAML front-matter (``name``, ``description`` and an
``arguments`` list whose entries carry ``name`` / ``required``) and the rest
of the file is a **Jinja2** template.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any
import re

import yaml  # PyYAML
from jinja2 import Template
from loguru import logger

_FRONT_MATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)
_SUFFIX = ".prompt.md"


@dataclass
class PromptTemplate:
    name: str
    description: str
    required_arguments: List[str]
    template_source: str
    _template: Template = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._template = Template(self.template_source, autoescape=False)

    def render(self, **kwargs: Any) -> str:
        """Fill the template; a missing required argument is a ``ValueError``."""
        missing = [name for name in self.required_arguments if name not in kwargs]
        if missing:
            raise ValueError(f"Prompt '{self.name}' is missing required arguments: {', '.join(missing)}")
        return self._template.render(**kwargs)


def parse_prompt_file(path: Path) -> PromptTemplate:
    text = path.read_text(encoding="utf-8")
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        raise ValueError("Missing YAML front-matter")

    meta = yaml.safe_load(match.group(1)) or {}
    required = [
        arg["name"] for arg in meta.get("arguments") or [] if arg.get("required", True)
    ]
    return PromptTemplate(
        name=meta.get("name") or path.name.removesuffix(_SUFFIX),
        description=meta.get("description", ""),
        required_arguments=required,
        template_source=text[match.end() :],
    )


def load_prompts(directory: str | Path) -> Dict[str, PromptTemplate]:
    """Map prompt name to template for every prompt file in *directory*.

    Unparseable files are skipped with a warning.
    """
    dir_path = Path(directory)
    if not dir_path.exists():
        raise FileNotFoundError(f"Prompt directory '{dir_path}' does not exist.")

    prompts: Dict[str, PromptTemplate] = {}
    for file_path in sorted(dir_path.glob(f"*{_SUFFIX}")):
        try:
            tmpl = parse_prompt_file(file_path)
        except Exception as exc:
            logger.warning("⚠️  Skipping prompt file '{}': {}", file_path, exc)
            continue
        prompts[tmpl.name] = tmpl
    return prompts
