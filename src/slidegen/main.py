from __future__ import annotations

import asyncio
import sys

import uvicorn

from slidegen.core.config import settings
from slidegen.services.db import get_engine, init_models


async def _init_db() -> None:
    # The engine is cached; its pool must not outlive this event loop.
    engine = get_engine()
    try:
        await init_models(engine)
    finally:
        await engine.dispose()


def main() -> None:
    if "--init-db" in sys.argv[1:]:
        asyncio.run(_init_db())
    uvicorn.run("slidegen.server.app:app", host="0.0.0.0", port=settings.PORT, reload=False)


if __name__ == "__main__":
    main()
