# slidegen/services/llm.py
"""
Async client for an OpenAI-compatible /chat/completions endpoint.

Without LLM_API_KEY the client runs offline and answers with deterministic,
well-formed payloads so the whole pipeline can be exercised in local dev.
"""
from __future__ import annotations

import json
import re
import uuid
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from slidegen.core.config import settings
from slidegen.core.errors import ErrorKind, PipelineError
from slidegen.core.logging import get_logger
from slidegen.core.metrics import LLM_CALLS

log = get_logger(__name__)

Messages = List[Dict[str, str]]


class LLMClient:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.LLM_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT_SEC
        self._transport = transport

    @property
    def offline(self) -> bool:
        return not self.api_key

    async def generate(
        self,
        messages: Messages,
        *,
        max_tokens: int,
        temperature: float,
        op: str = "chat",
    ) -> str:
        """
        Return the model's text for `messages`.
        Raises PipelineError(RATE_LIMITED) on HTTP 429 (never retried) and
        PipelineError(INTERNAL_ERROR) on any other upstream failure.
        """
        if self.offline:
            LLM_CALLS.labels(op, "offline").inc()
            return _offline_reply(messages)

        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            resp = await self._post(payload)
        except httpx.TransportError as e:
            LLM_CALLS.labels(op, "error").inc()
            raise PipelineError(ErrorKind.INTERNAL_ERROR, f"model transport error: {e}") from e

        if resp.status_code == 429:
            LLM_CALLS.labels(op, "rate_limited").inc()
            log.warning("model rate limited op=%s", op)
            raise PipelineError(ErrorKind.RATE_LIMITED, "upstream model returned 429", raw=resp.text[:500])
        if resp.status_code >= 400:
            LLM_CALLS.labels(op, "error").inc()
            raise PipelineError(
                ErrorKind.INTERNAL_ERROR,
                f"model returned HTTP {resp.status_code}",
                raw=resp.text[:500],
            )

        LLM_CALLS.labels(op, "ok").inc()
        try:
            data = resp.json()
            return data["choices"][0]["message"].get("content") or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise PipelineError(ErrorKind.INTERNAL_ERROR, "unexpected model response shape", raw=resp.text[:500]) from e

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(min=1, max=8),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as c:
            return await c.post(
                "/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )


# --------------------------- offline replies ---------------------------

_TOPIC_RE = re.compile(r"for the following prompt:\s*(.*?)\.\s*\n", re.S)
_OUTLINES_RE = re.compile(r"### Outlines[^\n]*\n(\[[\s\S]*?\])\s*\n\s*Return", re.S)
_HINT_RE = re.compile(r'based on this hint:\s*"(.*?)"', re.S)


def _user_text(messages: Messages) -> str:
    for m in reversed(messages):
        if m.get("role") == "user":
            return m.get("content") or ""
    return ""


def _mock_outline(topic: str) -> Dict[str, List[str]]:
    topic = topic or "the topic"
    return {"outlines": [
        f"An introduction to {topic} and why it matters today.",
        f"The history and origins of {topic}.",
        f"The core concepts behind {topic}.",
        f"Key benefits and trade-offs of {topic}.",
        f"Real-world use cases of {topic}.",
        f"Conclusions and next steps for {topic}.",
    ]}


def _mock_slide(point: str, with_image: bool) -> Dict[str, Any]:
    def nid() -> str:
        return str(uuid.uuid4())
    text_col = {
        "id": nid(), "type": "column", "name": "Column",
        "content": [
            {"id": nid(), "type": "heading1", "name": "Heading1", "content": point},
            {"id": nid(), "type": "paragraph", "name": "Paragraph", "content": point},
        ],
    }
    if not with_image:
        return {
            "id": nid(), "slideName": "Blank card", "type": "blank-card",
            "className": "p-8 mx-auto flex justify-center items-center",
            "content": text_col,
        }
    return {
        "id": nid(), "slideName": "Image and text", "type": "imageAndText",
        "className": "p-4 mx-auto flex justify-center items-center",
        "content": {
            "id": nid(), "type": "column", "name": "Column",
            "content": [{
                "id": nid(), "type": "resizable-column", "name": "Image and text",
                "content": [
                    {"id": nid(), "type": "image", "name": "Image",
                     "content": "https://placehold.co/1024x768", "alt": point},
                    text_col,
                ],
            }],
        },
    }


def _offline_reply(messages: Messages) -> str:
    """Deterministic payloads shaped like real model output (fenced JSON)."""
    text = _user_text(messages)
    m = _OUTLINES_RE.search(text)
    if m:
        try:
            points = [str(p) for p in json.loads(m.group(1))]
        except ValueError:
            points = []
        slides = [_mock_slide(p, with_image=(i % 2 == 0)) for i, p in enumerate(points)]
        return "```json\n" + json.dumps(slides, ensure_ascii=False, indent=2) + "\n```"
    if '"outlines"' in text:
        t = _TOPIC_RE.search(text)
        body = json.dumps(_mock_outline(t.group(1).strip() if t else ""), ensure_ascii=False, indent=2)
        return "```json\n" + body + "\n```"
    h = _HINT_RE.search(text)
    hint = h.group(1).strip() if h else "a modern workplace"
    return f"A bright, candid scene of {hint}, captured in natural daylight with a shallow depth of field."
