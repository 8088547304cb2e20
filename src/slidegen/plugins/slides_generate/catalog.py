# slidegen/plugins/slides_generate/catalog.py
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

CATALOG_PATH = Path(__file__).parent / "catalog" / "layouts.yaml"


@lru_cache(maxsize=1)
def _load() -> Dict[str, Any]:
    with open(CATALOG_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not data.get("minimal") or not data.get("full"):
        raise RuntimeError(f"layout catalog at {CATALOG_PATH} is missing 'minimal' or 'full'")
    return data


@lru_cache(maxsize=1)
def examples_json() -> tuple[str, str]:
    """(minimal examples, full example) rendered once for prompt embedding."""
    data = _load()
    return (
        json.dumps(data["minimal"], ensure_ascii=False, indent=2),
        json.dumps(data["full"], ensure_ascii=False, indent=2),
    )
