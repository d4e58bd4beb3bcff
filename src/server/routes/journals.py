"""Journal endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException

from src.storage import User

from ..dependencies import get_current_user, get_repository, serialize_journal
from ..schemas import JournalResponse, JournalUpsertRequest

logger = logging.getLogger(__name__)


def register_journal_routes(app: FastAPI) -> None:
    """Register journal endpoints."""

    @app.post("/api/journals", response_model=JournalResponse)
    async def save_journal(
        request: JournalUpsertRequest, user: User = Depends(get_current_user)
    ) -> JournalResponse:
        """Create the journal for a date, or update it if one already exists."""
        repo = get_repository()
        payload = request.model_dump(exclude_unset=True, exclude={"entry_date"})
        try:
            journal = await asyncio.to_thread(
                repo.upsert_journal,
                user.id,
                request.entry_date.isoformat(),
                **payload,
            )
            return serialize_journal(journal)
        except Exception as exc:
            logger.exception("Failed to save journal: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to save journal entry") from exc

    @app.get("/api/journals", response_model=List[JournalResponse])
    async def list_journals(user: User = Depends(get_current_user)) -> List[JournalResponse]:
        """List journals, newest date first."""
        repo = get_repository()
        try:
            journals = await asyncio.to_thread(repo.get_journals, user.id)
            return [serialize_journal(journal) for journal in journals]
        except Exception as exc:
            logger.exception("Failed to list journals: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch journals") from exc

    @app.get("/api/journals/{entry_date}", response_model=Optional[JournalResponse])
    async def get_journal(
        entry_date: date, user: User = Depends(get_current_user)
    ) -> Optional[JournalResponse]:
        """Return the journal of a date, or null."""
        repo = get_repository()
        try:
            journal = await asyncio.to_thread(
                repo.get_journal_by_date, user.id, entry_date.isoformat()
            )
            return serialize_journal(journal) if journal else None
        except Exception as exc:
            logger.exception("Failed to fetch journal: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch journal") from exc
