# slidegen/services/projects.py
"""
Persistence collaborator consumed by the slides pipeline.

The pipeline only depends on the `ProjectStore` protocol; `SqlProjectStore`
is the SQLAlchemy implementation used by the server.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slidegen.core.logging import get_logger
from slidegen.services.models import Project, User

log = get_logger(__name__)


class ProjectStore(Protocol):
    async def get_outlines(self, project_id: str) -> Dict[str, List[str]]: ...

    async def save_slides(self, project_id: str, slides: List[Dict[str, Any]], theme_name: str) -> None: ...

    async def get_user(self, user_id: str) -> Dict[str, bool]: ...

    async def get_project(self, project_id: str) -> Dict[str, bool]: ...


class SqlProjectStore:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sm = sessionmaker

    async def get_outlines(self, project_id: str) -> Dict[str, List[str]]:
        async with self._sm() as s:
            p = await s.get(Project, project_id)
            return {"outlines": list(p.outlines or []) if p else []}

    async def save_slides(self, project_id: str, slides: List[Dict[str, Any]], theme_name: str) -> None:
        async with self._sm() as s:
            async with s.begin():
                p = await s.get(Project, project_id)
                if p is None:
                    raise LookupError(f"project {project_id} not found")
                p.slides = slides
                p.theme_name = theme_name
        log.info("stored %d slides theme=%s", len(slides), theme_name)

    async def get_user(self, user_id: str) -> Dict[str, bool]:
        async with self._sm() as s:
            u = await s.get(User, user_id)
            return {"exists": u is not None, "subscriptionActive": bool(u and u.subscription_active)}

    async def get_project(self, project_id: str) -> Dict[str, bool]:
        async with self._sm() as s:
            p = await s.get(Project, project_id)
            return {"exists": p is not None, "isDeleted": bool(p and p.is_deleted)}

    # --- seeding / admin helpers ---

    async def upsert_user(self, user_id: str, *, subscription_active: bool = True, email: Optional[str] = None) -> None:
        async with self._sm() as s:
            async with s.begin():
                u = await s.get(User, user_id)
                if u is None:
                    s.add(User(id=user_id, email=email, subscription_active=subscription_active))
                else:
                    u.subscription_active = subscription_active
                    if email is not None:
                        u.email = email

    async def create_project(self, user_id: str, outlines: List[str], *, title: str = "Untitled",
                             project_id: Optional[str] = None) -> str:
        pid = project_id or str(uuid.uuid4())
        async with self._sm() as s:
            async with s.begin():
                s.add(Project(id=pid, user_id=user_id, title=title, outlines=list(outlines)))
        return pid

    async def soft_delete(self, project_id: str) -> bool:
        async with self._sm() as s:
            async with s.begin():
                p = await s.get(Project, project_id)
                if p is None:
                    return False
                p.is_deleted = True
        return True

    async def get_slides(self, project_id: str) -> Optional[Dict[str, Any]]:
        async with self._sm() as s:
            p = await s.get(Project, project_id)
            if p is None:
                return None
            return {"slides": p.slides, "themeName": p.theme_name}
