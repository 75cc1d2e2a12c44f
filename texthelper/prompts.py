"""Prompt templates for the processing actions.

Templates live in ``<TEMPLATES_DIR>/<variant>/<action>.txt`` and contain a
``{text}`` placeholder. The ``default`` variant must provide every action;
other variants may override only some of them.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

TEMPLATES_DIR = Path(
    os.getenv("PROMPTS_DIR", Path(__file__).resolve().parent / "prompt_templates")
)
DEFAULT_VARIANT = "default"

logger = logging.getLogger(__name__)


def available_variants() -> List[str]:
    """Names of the template variants found on disk, sorted."""
    if not TEMPLATES_DIR.is_dir():
        return []
    return sorted(path.name for path in TEMPLATES_DIR.iterdir() if path.is_dir())


@lru_cache(maxsize=32)
def load_template(action: str, variant: str = DEFAULT_VARIANT) -> str:
    """Return the template for an action, preferring the given variant.

    Raises:
        FileNotFoundError: neither the variant nor the default has the action.
    """
    path = TEMPLATES_DIR / variant / f"{action}.txt"
    if not path.exists() and variant != DEFAULT_VARIANT:
        logger.info("Variant '%s' has no %s template, using default", variant, action)
        path = TEMPLATES_DIR / DEFAULT_VARIANT / f"{action}.txt"

    if not path.exists():
        raise FileNotFoundError(f"No prompt template for {action} (variant={variant})")
    return path.read_text(encoding="utf-8")


def render_prompt(template: str, **values: Optional[str]) -> str:
    """Fill a template; None values become empty strings."""
    return template.format(
        **{key: "" if value is None else str(value) for key, value in values.items()}
    )
