"""Prompt templates sent to the model, kept under ``templates/``."""

from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from handgrade.settings import settings

from .loader import load_prompts, PromptTemplate

TEMPLATES_DIR = Path(__file__).parent / "templates"

_prompt_cache: Dict[str, PromptTemplate] = load_prompts(TEMPLATES_DIR)


def refresh() -> None:
    """Re-read every template from disk."""
    global _prompt_cache
    _prompt_cache = load_prompts(TEMPLATES_DIR)


def get_prompt(name: str) -> PromptTemplate:
    """Raises ``KeyError`` for an unknown *name*."""
    return _prompt_cache[name]


def render_prompt(name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
    return get_prompt(name).render(**(arguments or {}))


def watch_templates(path: Path = TEMPLATES_DIR):
    """Reload the templates whenever a prompt file under *path* changes.

    Returns the started watchdog observer.
    """
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    class _ReloadHandler(FileSystemEventHandler):
        def on_modified(self, event):
            if event.is_directory or not str(event.src_path).endswith(".prompt.md"):
                return
            refresh()
            logger.debug("🔄 [Prompts] Reloaded templates after change in {}", event.src_path)

    observer = Observer()
    observer.schedule(_ReloadHandler(), str(path), recursive=False)
    observer.daemon = True
    observer.start()
    return observer


if settings.PROMPT_HOT_RELOAD:
    watch_templates()


__all__ = ["PromptTemplate", "get_prompt", "render_prompt", "refresh", "watch_templates"]
