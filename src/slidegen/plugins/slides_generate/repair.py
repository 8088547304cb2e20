# slidegen/plugins/slides_generate/repair.py
"""
Turn free-form model text into validated payloads.

Models wrap JSON in Markdown fences and sometimes add a sentence before or
after it despite instructions. Normalisation is kept separate from parsing:

    normalize()  -> fence-free text
    extract()    -> the slice from the first opening delimiter to the last
                    matching closing delimiter
    parse_*()    -> json + pydantic validation, raising PipelineError
    repair_*()   -> the same, returned as a tagged Repaired result
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar
import json
import re

from pydantic import ValidationError

from slidegen.core.errors import ErrorKind, PipelineError
from slidegen.core.logging import get_logger
from slidegen.schemas.content import LAYOUT_SET, LayoutNode, OutlinePayload
from .walker import ensure_unique_ids

log = get_logger(__name__)

T = TypeVar("T")

_LEADING_FENCE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")

_CLOSERS = {"[": "]", "{": "}"}

# Raw text kept on errors / logs is capped.
_RAW_EXCERPT = 500


@dataclass
class Repaired(Generic[T]):
    value: Optional[T] = None
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _invalid(detail: str, raw: str) -> PipelineError:
    return PipelineError(ErrorKind.INVALID_JSON, detail, raw=raw)


def normalize(raw: str) -> str:
    """Strip surrounding whitespace and a leading/trailing code fence."""
    txt = (raw or "").strip()
    txt = _LEADING_FENCE.sub("", txt, count=1)
    txt = _TRAILING_FENCE.sub("", txt, count=1)
    return txt.strip()


def extract(raw: str, opener: str) -> str:
    """Slice `raw` between the first `opener` and the last matching closer."""
    closer = _CLOSERS[opener]
    txt = normalize(raw)
    start = txt.find(opener)
    end = txt.rfind(closer)
    if start == -1 or end == -1 or end < start:
        raise _invalid(f"no {opener}...{closer} payload found in model output", raw)
    return txt[start:end + 1]


def _parse_json_safe(txt: str) -> Any | None:
    try:
        return json.loads(txt)
    except (ValueError, RecursionError):
        return None


def parse_payload(raw: str, opener: str) -> Any:
    obj = _parse_json_safe(extract(raw, opener))
    if obj is None:
        raise _invalid("model output is not valid JSON", raw)
    return obj


def parse_outline(raw: str) -> OutlinePayload:
    obj = parse_payload(raw, "{")
    if not isinstance(obj, dict) or "outlines" not in obj:
        raise _invalid("expected an object with an 'outlines' array", raw)
    try:
        return OutlinePayload.model_validate(obj)
    except ValidationError as e:
        raise _invalid(f"outline payload failed validation: {e.error_count()} error(s)", raw) from e


def parse_layouts(raw: str) -> List[LayoutNode]:
    obj = parse_payload(raw, "[")
    if not isinstance(obj, list):
        raise _invalid("expected a JSON array of slides", raw)
    try:
        slides = LAYOUT_SET.validate_python(obj)
    except ValidationError as e:
        raise _invalid(f"layout payload failed validation: {e.error_count()} error(s)", raw) from e
    except RecursionError as e:
        raise _invalid("layout payload is nested too deeply", raw) from e
    ensure_unique_ids(slides)
    return slides


def _repair(fn, raw: str) -> Repaired:
    try:
        return Repaired(value=fn(raw))
    except PipelineError as e:
        log.warning("repair failed: %s raw=%r", e.detail, (raw or "")[:_RAW_EXCERPT])
        return Repaired(error=e)


def repair_outline(raw: str) -> Repaired[OutlinePayload]:
    return _repair(parse_outline, raw)


def repair_layouts(raw: str) -> Repaired[List[LayoutNode]]:
    return _repair(parse_layouts, raw)
