# slidegen/plugins/slides_generate/prompts.py
"""
Prompt text for the generation calls. Pure templating: no I/O besides the
one-time template/catalog load.
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from slidegen.schemas.content import CONTAINER_TYPES, CONTENT_TYPES, LAYOUT_TYPES, LEAF_TYPES
from .catalog import examples_json

MIN_OUTLINE_POINTS = 6
ALT_MAX_WORDS = 50

OUTLINE_SYSTEM = "You are a helpful AI that generates outlines for presentations."
LAYOUT_SYSTEM = "You generate JSON layouts for presentation slides."
ALT_SYSTEM = "You write concise, vivid descriptions of photographs for presentation slides."


@lru_cache(maxsize=1)
def _env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def outline_prompt(topic: str) -> str:
    return _env().get_template("outline.j2").render(
        topic=topic.strip(),
        min_points=MIN_OUTLINE_POINTS,
    )


def layout_prompt(outlines: Sequence[str]) -> str:
    minimal, full = examples_json()
    return _env().get_template("layouts.j2").render(
        layout_types=LAYOUT_TYPES,
        content_types=CONTENT_TYPES,
        leaf_types=LEAF_TYPES,
        container_types=CONTAINER_TYPES,
        minimal_examples=minimal,
        full_example=full,
        outlines_json=json.dumps(list(outlines), ensure_ascii=False, indent=2),
    )


def alt_text_prompt(hint: str) -> str:
    return _env().get_template("alt_text.j2").render(hint=hint.strip(), max_words=ALT_MAX_WORDS)


def outline_messages(topic: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": OUTLINE_SYSTEM},
        {"role": "user", "content": outline_prompt(topic)},
    ]


def layout_messages(outlines: Sequence[str]) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": LAYOUT_SYSTEM},
        {"role": "user", "content": layout_prompt(outlines)},
    ]


def alt_text_messages(hint: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": ALT_SYSTEM},
        {"role": "user", "content": alt_text_prompt(hint)},
    ]
