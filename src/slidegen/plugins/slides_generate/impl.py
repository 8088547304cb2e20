# slidegen/plugins/slides_generate/impl.py
"""
Presentation generation pipeline:
 - Outline: prompt -> at least six single-sentence points
 - Layouts: stored outline -> validated slide trees (one per point)
 - Images: every `image` node across every slide resolved concurrently,
   each falling back to a fixed placeholder on failure
 - Hands the finished slides + theme to the project store

Both public operations return an OpResult and never raise.
"""
from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import Dict, List, Optional

from slidegen.core.config import settings
from slidegen.core.ctx import set_ctx
from slidegen.core.errors import ErrorKind, OpResult, PipelineError, classify_exception
from slidegen.core.logging import get_logger
from slidegen.schemas.content import LayoutNode, LeafNode, dump_slides
from slidegen.services.projects import ProjectStore
from .images import ImageResolution, ImageResolver
from .prompts import layout_messages, outline_messages
from .repair import repair_layouts, repair_outline
from .walker import find_images

log = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "Idle"
    COMPOSING_PROMPT = "ComposingPrompt"
    AWAITING_MODEL_RESPONSE = "AwaitingModelResponse"
    PARSING = "Parsing"
    IMAGE_RESOLUTION = "ImageResolution"
    DONE = "Done"
    REPAIR_FAILED = "RepairFailed"
    RATE_LIMITED = "RateLimited"
    FAILED = "Failed"


TERMINAL_STATES = frozenset({
    PipelineState.DONE,
    PipelineState.REPAIR_FAILED,
    PipelineState.RATE_LIMITED,
    PipelineState.FAILED,
})


class _Run:
    """Per-invocation state tracker; every transition is logged."""

    def __init__(self, op: str):
        self.id = uuid.uuid4().hex[:12]
        self.op = op
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [self.state]

    def advance(self, state: PipelineState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"{self.op} already finished in state {self.state.value}")
        log.info("%s %s -> %s", self.op, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def fail(self, err: PipelineError) -> OpResult:
        if err.kind is ErrorKind.RATE_LIMITED:
            self.advance(PipelineState.RATE_LIMITED)
        elif err.kind is ErrorKind.INVALID_JSON:
            self.advance(PipelineState.REPAIR_FAILED)
        else:
            self.advance(PipelineState.FAILED)
        log.warning("%s failed: %s", self.op, err)
        return self.result(OpResult.failure(err))

    def result(self, res: OpResult) -> OpResult:
        res.meta.update({"run_id": self.id, "state": self.state.value})
        return res


class SlidesPipeline:
    def __init__(
        self,
        llm,
        store: ProjectStore,
        resolver: Optional[ImageResolver] = None,
        *,
        image_concurrency: Optional[int] = None,
    ):
        self.llm = llm
        self.store = store
        self.resolver = resolver or ImageResolver(llm)
        self.image_concurrency = max(1, image_concurrency or settings.IMAGE_CONCURRENCY)

    # ------------------------------ outline ------------------------------

    async def generate_outline(self, user_prompt: str) -> OpResult:
        run = _Run("generate_outline")
        set_ctx(run_id=run.id)
        try:
            if not (user_prompt or "").strip():
                raise PipelineError(ErrorKind.VALIDATION_FAILURE, "Prompt is required")

            run.advance(PipelineState.COMPOSING_PROMPT)
            messages = outline_messages(user_prompt)

            run.advance(PipelineState.AWAITING_MODEL_RESPONSE)
            raw = await self.llm.generate(
                messages,
                max_tokens=settings.OUTLINE_MAX_TOKENS,
                temperature=settings.OUTLINE_TEMPERATURE,
                op="outline",
            )
            if not (raw or "").strip():
                raise PipelineError(ErrorKind.NO_CONTENT, "No content generated")

            run.advance(PipelineState.PARSING)
            repaired = repair_outline(raw)
            if not repaired.ok:
                return run.fail(repaired.error)

            run.advance(PipelineState.DONE)
            return run.result(OpResult.success({"outlines": repaired.value.outlines}))
        except Exception as e:
            return run.fail(classify_exception(e))

    # ------------------------------ layouts ------------------------------

    async def generate_layouts(self, project_id: str, theme: str, *, user_id: Optional[str]) -> OpResult:
        run = _Run("generate_layouts")
        set_ctx(run_id=run.id, project_id=project_id or None, user_id=user_id or None)
        try:
            outlines = await self._check_preconditions(project_id, theme, user_id)

            run.advance(PipelineState.COMPOSING_PROMPT)
            messages = layout_messages(outlines)

            run.advance(PipelineState.AWAITING_MODEL_RESPONSE)
            raw = await self.llm.generate(
                messages,
                max_tokens=settings.LAYOUT_MAX_TOKENS,
                temperature=settings.LAYOUT_TEMPERATURE,
                op="layouts",
            )
            if not (raw or "").strip():
                raise PipelineError(ErrorKind.NO_CONTENT, "No content generated")

            run.advance(PipelineState.PARSING)
            repaired = repair_layouts(raw)
            if not repaired.ok:
                return run.fail(repaired.error)
            slides = repaired.value
            if not slides:
                raise PipelineError(ErrorKind.NO_CONTENT, "No content generated")

            run.advance(PipelineState.IMAGE_RESOLUTION)
            resolutions = await self.resolve_images(slides)
            fallbacks = sum(1 for r in resolutions if r.outcome == "fallback")
            log.info("resolved %d images (%d fallback) over %d slides",
                     len(resolutions), fallbacks, len(slides))

            data = dump_slides(slides)
            await self.store.save_slides(project_id, data, theme)

            run.advance(PipelineState.DONE)
            return run.result(OpResult.success(data))
        except Exception as e:
            return run.fail(classify_exception(e))

    async def _check_preconditions(self, project_id: str, theme: str, user_id: Optional[str]) -> List[str]:
        """All checks run before the model is called; each raises PipelineError."""
        if not project_id:
            raise PipelineError(ErrorKind.VALIDATION_FAILURE, "Project ID is required")
        if not (theme or "").strip():
            raise PipelineError(ErrorKind.VALIDATION_FAILURE, "Theme is required")
        if not user_id:
            raise PipelineError(ErrorKind.UNAUTHORIZED, "User not authenticated")

        user = await self.store.get_user(user_id)
        if not user.get("exists") or not user.get("subscriptionActive"):
            raise PipelineError(ErrorKind.FORBIDDEN, "User does not have an active subscription")

        project = await self.store.get_project(project_id)
        if not project.get("exists") or project.get("isDeleted"):
            raise PipelineError(ErrorKind.NOT_FOUND, "Project not found")

        outlines = (await self.store.get_outlines(project_id)).get("outlines") or []
        if not outlines:
            raise PipelineError(ErrorKind.VALIDATION_FAILURE, "No outlines found")
        return [str(o) for o in outlines]

    # ------------------------------ images ------------------------------

    async def resolve_images(self, slides: List[LayoutNode]) -> List[ImageResolution]:
        """
        Resolve every image node of every slide as one bounded fan-out.
        Tasks only compute; results are applied onto the tree afterwards,
        keyed by node id.
        """
        targets: List[LeafNode] = [img for slide in slides for img in find_images(slide)]
        if not targets:
            return []
        sem = asyncio.Semaphore(self.image_concurrency)

        async def _one(node: LeafNode) -> ImageResolution:
            async with sem:
                return await self.resolver.resolve(node)

        results = await asyncio.gather(*(_one(n) for n in targets))

        by_id: Dict[str, ImageResolution] = {r.node_id: r for r in results}
        for node in targets:
            by_id[node.id].apply(node)
        return list(results)
