from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from serenity.api.deps import get_current_user_id, get_mood_store
from serenity.schemas.mood import (
    MoodEntryCreate,
    MoodEntryCreated,
    MoodEntryItem,
    MoodEntryListResponse,
    MoodOptionItem,
)
from serenity.services.mood import (
    DISPLAY_LIMIT,
    FETCH_LIMIT,
    MOOD_OPTIONS,
    MoodJournal,
    MoodLogStore,
    PersistenceError,
    saved_message,
)


router = APIRouter()


@router.get(
    "/options",
    response_model=list[MoodOptionItem],
    summary="List the moods a user can check in with.",
)
async def list_mood_options() -> list[MoodOptionItem]:
    return [MoodOptionItem.from_domain(option) for option in MOOD_OPTIONS]


@router.get(
    "/entries",
    response_model=MoodEntryListResponse,
    summary="List recent mood check-ins for the signed-in user.",
)
async def list_mood_entries(
    limit: int = Query(
        FETCH_LIMIT,
        ge=1,
        le=100,
        description="Maximum number of historical check-ins to fetch.",
    ),
    display_limit: int = Query(
        DISPLAY_LIMIT,
        ge=0,
        le=100,
        description="Number of check-ins surfaced as recent.",
    ),
    user_id: UUID = Depends(get_current_user_id),
    store: MoodLogStore = Depends(get_mood_store),
) -> MoodEntryListResponse:
    journal = MoodJournal(user_id)
    try:
        await journal.refresh(store, limit=limit)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return MoodEntryListResponse(
        items=[MoodEntryItem.from_domain(record) for record in journal.entries],
        recent=[MoodEntryItem.from_domain(record) for record in journal.recent(display_limit)],
    )


@router.post(
    "/entries",
    response_model=MoodEntryCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Record a new mood check-in.",
)
async def create_mood_entry(
    payload: MoodEntryCreate,
    user_id: UUID = Depends(get_current_user_id),
    store: MoodLogStore = Depends(get_mood_store),
) -> MoodEntryCreated:
    journal = MoodJournal(user_id)
    try:
        record = await journal.save(store, payload.mood, payload.journal)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MoodEntryCreated(
        entry=MoodEntryItem.from_domain(record),
        message=saved_message(record),
    )
