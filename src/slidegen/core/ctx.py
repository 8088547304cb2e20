# src/slidegen/core/ctx.py
from __future__ import annotations
import contextvars
from typing import Optional, Mapping

_run_id     = contextvars.ContextVar("run_id",     default=None)
_project_id = contextvars.ContextVar("project_id", default=None)
_user_id    = contextvars.ContextVar("user_id",    default=None)

def set_ctx(*, run_id: Optional[str]=None, project_id: Optional[str]=None,
            user_id: Optional[str]=None) -> None:
    if run_id is not None:     _run_id.set(run_id)
    if project_id is not None: _project_id.set(project_id)
    if user_id is not None:    _user_id.set(user_id)

def get_ctx() -> Mapping[str, Optional[str]]:
    return {
        "run_id":     _run_id.get(),
        "project_id": _project_id.get(),
        "user_id":    _user_id.get(),
    }
