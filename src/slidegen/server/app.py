# src/slidegen/server/app.py
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slidegen.core.config import settings
from slidegen.core.logging import get_logger
from slidegen.core.metrics import MetricsMiddleware, metrics_app
from slidegen.api.routes.slides import router as slides_router

log = get_logger(__name__)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

# CORS for local FE dev
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)

app.mount("/metrics", metrics_app)
app.include_router(slides_router)


# ---------------- Health ----------------

@app.get("/healthz")
def healthz():
    return {"ok": True, "env": settings.ENV}
