# src/slidegen/api/routes/slides.py
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from slidegen.core.auth import Caller, get_caller
from slidegen.core.errors import OpResult
from slidegen.plugins.slides_generate.impl import SlidesPipeline
from slidegen.services.db import get_async_sessionmaker
from slidegen.services.llm import LLMClient
from slidegen.services.projects import SqlProjectStore

router = APIRouter()


class OutlineRequest(BaseModel):
    prompt: str = Field(default="", description="Free-text topic for the presentation")


class LayoutsRequest(BaseModel):
    theme: str = Field(default="", description="Theme name stored with the slides")


@lru_cache(maxsize=1)
def get_pipeline() -> SlidesPipeline:
    """Process-wide pipeline; tests replace it via dependency_overrides."""
    return SlidesPipeline(LLMClient(), SqlProjectStore(get_async_sessionmaker()))


def _respond(res: OpResult) -> JSONResponse:
    body = {"data": res.data} if res.ok else {"error": res.error, "kind": res.kind.value if res.kind else None}
    return JSONResponse(status_code=res.status, content=body)


@router.post("/v1/outlines")
async def create_outline(
    req: OutlineRequest,
    pipeline: SlidesPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Generate an outline for a topic.
    200: {"data": {"outlines": ["...", ...]}}
    400 | 429 | 500: {"error": "...", "kind": "..."}
    """
    return _respond(await pipeline.generate_outline(req.prompt))


@router.post("/v1/projects/{project_id}/layouts")
async def create_layouts(
    project_id: str,
    req: LayoutsRequest,
    caller: Caller = Depends(get_caller),
    pipeline: SlidesPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Expand a project's stored outline into slides and store them with the theme.
    200: {"data": [LayoutNode, ...]}
    400 | 403 | 404 | 429 | 500: {"error": "...", "kind": "..."}
    """
    user_id = caller.user_id if caller.authenticated else None
    return _respond(await pipeline.generate_layouts(project_id, req.theme, user_id=user_id))
