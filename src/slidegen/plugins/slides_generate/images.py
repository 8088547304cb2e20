# slidegen/plugins/slides_generate/images.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse
import random
import re

import httpx

from slidegen.core.config import settings
from slidegen.core.errors import ErrorKind, PipelineError
from slidegen.core.logging import get_logger
from slidegen.core.metrics import IMAGE_RESOLUTIONS
from slidegen.schemas.content import LeafNode
from .prompts import ALT_MAX_WORDS, alt_text_messages

log = get_logger(__name__)

FALLBACK_IMAGE_URL = settings.IMAGE_FALLBACK_URL

_BANNED_LEAD = re.compile(r"^(?:an?\s+|the\s+)?(?:image|picture|photo|photograph)\s+of\s+", re.I)

# ---------- simple helpers ----------

def is_url(s: Optional[str]) -> bool:
    if not s or not isinstance(s, str):
        return False
    p = urlparse(s)
    return p.scheme in ("http", "https") and bool(p.netloc)

def _clean_alt(text: str) -> str:
    t = (text or "").strip().strip('"').strip("'").strip()
    t = _BANNED_LEAD.sub("", t).strip()
    words = t.split()
    if len(words) > ALT_MAX_WORDS:
        t = " ".join(words[:ALT_MAX_WORDS]).rstrip(",;:") + "."
    return t[:1].upper() + t[1:] if t else t

def generic_alt(hint: str) -> str:
    hint = (hint or "").strip()
    return f"An image representing {hint}" if hint else "Presentation image"


@dataclass
class ImageResolution:
    node_id: str
    url: str
    alt: str
    outcome: str  # "resolved" | "fallback"
    reason: Optional[str] = None

    def apply(self, node: LeafNode) -> None:
        node.content = self.url
        node.alt = self.alt


class ImageResolver:
    """
    Fills one `image` node with a reachable URL and descriptive alt text.
    `resolve()` never raises: every failure ends in the fallback URL.
    """

    def __init__(
        self,
        llm,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
        fallback_url: Optional[str] = None,
        provider_template: Optional[str] = None,
    ):
        self.llm = llm
        self._transport = transport
        self._rng = rng or random.Random()
        self.fallback_url = fallback_url or FALLBACK_IMAGE_URL
        self.provider_template = provider_template or settings.IMAGE_PROVIDER_TEMPLATE

    # ---------- steps ----------

    async def describe(self, hint: str) -> str:
        text = await self.llm.generate(
            alt_text_messages(hint or "a professional presentation scene"),
            max_tokens=settings.ALT_MAX_TOKENS,
            temperature=settings.ALT_TEMPERATURE,
            op="alt_text",
        )
        alt = _clean_alt(text)
        if not alt:
            raise PipelineError(ErrorKind.NO_CONTENT, "empty alt text from model")
        return alt

    def candidate_url(self) -> str:
        seed = self._rng.randint(settings.IMAGE_SEED_MIN, settings.IMAGE_SEED_MAX)
        return self.provider_template.format(
            seed=seed, width=settings.IMAGE_WIDTH, height=settings.IMAGE_HEIGHT,
        )

    async def probe(self, url: str) -> bool:
        """HEAD the candidate (GET when HEAD is refused). Transport errors raise NetworkFailure."""
        try:
            async with httpx.AsyncClient(
                timeout=settings.IMAGE_PROBE_TIMEOUT_SEC,
                follow_redirects=True,
                transport=self._transport,
            ) as c:
                r = await c.head(url)
                if r.status_code == 405:
                    async with c.stream("GET", url) as r:
                        return r.is_success
                return r.is_success
        except httpx.HTTPError as e:
            raise PipelineError(ErrorKind.NETWORK_FAILURE, f"probe failed for {url}: {e}") from e

    # ---------- main ----------

    async def resolve(self, node: LeafNode) -> ImageResolution:
        hint = (node.alt or "").strip()
        alt: Optional[str] = None
        try:
            alt = await self.describe(hint)
            url = self.candidate_url()
            if not is_url(url):
                return self._fallback(node, alt, hint, f"candidate is not a URL: {url!r}")
            if not await self.probe(url):
                return self._fallback(node, alt, hint, f"unreachable: {url}")
        except Exception as e:  # every failure degrades to the fallback image
            return self._fallback(node, alt, hint, str(e) or e.__class__.__name__)

        IMAGE_RESOLUTIONS.labels("resolved").inc()
        return ImageResolution(node_id=node.id, url=url, alt=alt, outcome="resolved")

    async def resolve_into(self, node: LeafNode) -> ImageResolution:
        res = await self.resolve(node)
        res.apply(node)
        return res

    def _fallback(self, node: LeafNode, alt: Optional[str], hint: str, reason: str) -> ImageResolution:
        log.info("image %s falls back: %s", node.id, reason)
        IMAGE_RESOLUTIONS.labels("fallback").inc()
        return ImageResolution(
            node_id=node.id,
            url=self.fallback_url,
            alt=alt or generic_alt(hint),
            outcome="fallback",
            reason=reason,
        )
