"""Study session lifecycle endpoints for accounts and guests."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user, get_study_session_service
from app.db.models.user import User
from app.schemas import (
    GuestSessionCompleteRequest,
    GuestSessionCreateRequest,
    GuestSessionProgressUpdate,
    SessionCompleteRequest,
    SessionCompletionResponse,
    SessionCreateRequest,
    SessionProgressUpdate,
    StudySessionRead,
)
from app.services.study_sessions import (
    CardAnswer,
    SessionCompletion,
    SessionSnapshot,
    StudySessionService,
)


router = APIRouter(prefix="/study-sessions", tags=["study-sessions"])


def _snapshot(payload: SessionProgressUpdate) -> SessionSnapshot:
    return SessionSnapshot(
        duration_seconds=payload.duration_seconds,
        correct_count=payload.correct_count,
        incorrect_count=payload.incorrect_count,
        skipped_count=payload.skipped_count,
        session_xp=payload.session_xp,
    )


def _completion(payload: SessionCompleteRequest) -> SessionCompletion:
    return SessionCompletion(
        duration_seconds=payload.duration_seconds,
        correct_count=payload.correct_count,
        incorrect_count=payload.incorrect_count,
        skipped_count=payload.skipped_count,
        score=payload.score,
        session_xp=payload.session_xp,
        card_answers=tuple(
            CardAnswer(card_id=answer.card_id, was_correct=answer.was_correct)
            for answer in payload.card_answers
        ),
    )


# Guest routes are registered first so "/guest" never matches "/{session_id}".
@router.post("/guest", response_model=StudySessionRead, status_code=status.HTTP_201_CREATED)
def start_guest_session(
    payload: GuestSessionCreateRequest,
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    """Start an anonymous session keyed by the client's guest token."""

    session = service.start_guest_session(
        guest_token=payload.guest_token,
        total_cards=payload.total_cards,
        deck_id=payload.deck_id,
        title=payload.title,
    )
    return StudySessionRead.model_validate(session)


@router.put("/guest/{session_id}", response_model=StudySessionRead)
def save_guest_progress(
    session_id: uuid.UUID,
    payload: GuestSessionProgressUpdate,
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    session = service.save_guest_progress(
        session_id, guest_token=payload.guest_token, snapshot=_snapshot(payload)
    )
    return StudySessionRead.model_validate(session)


@router.post("/guest/{session_id}/complete", response_model=StudySessionRead)
def complete_guest_session(
    session_id: uuid.UUID,
    payload: GuestSessionCompleteRequest,
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    """Finish a guest session; totals reach an account only after migration."""

    session = service.complete_guest_session(
        session_id, guest_token=payload.guest_token, completion=_completion(payload)
    )
    return StudySessionRead.model_validate(session)


@router.post("", response_model=StudySessionRead, status_code=status.HTTP_201_CREATED)
def start_session(
    payload: SessionCreateRequest,
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    session = service.start_session(
        user=current_user,
        total_cards=payload.total_cards,
        deck_id=payload.deck_id,
        title=payload.title,
    )
    return StudySessionRead.model_validate(session)


@router.get("", response_model=list[StudySessionRead])
def list_sessions(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> list[StudySessionRead]:
    """Return the most recently started sessions of the authenticated user."""

    sessions = service.list_sessions(user_id=current_user.id, limit=limit)
    return [StudySessionRead.model_validate(session) for session in sessions]


@router.get("/{session_id}", response_model=StudySessionRead)
def read_session(
    session_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    session = service.get_session(session_id, user_id=current_user.id)
    return StudySessionRead.model_validate(session)


@router.put("/{session_id}", response_model=StudySessionRead)
def save_progress(
    session_id: uuid.UUID,
    payload: SessionProgressUpdate,
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    """Auto-save running totals; increments count toward XP and today's row at once."""

    session = service.save_progress(
        session_id, user_id=current_user.id, snapshot=_snapshot(payload)
    )
    return StudySessionRead.model_validate(session)


@router.post("/{session_id}/complete", response_model=SessionCompletionResponse)
def complete_session(
    session_id: uuid.UUID,
    payload: SessionCompleteRequest,
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> SessionCompletionResponse:
    """Complete a session; a second completion of the same session returns 409."""

    result = service.record_session_completion(
        session_id, user_id=current_user.id, completion=_completion(payload)
    )
    return SessionCompletionResponse(
        session=StudySessionRead.model_validate(result.session),
        xp_earned=result.xp_earned,
        leveled_up=result.leveled_up,
        old_level=result.old_level,
        new_level=result.new_level,
        cards_learned=result.cards_learned,
        cards_mastered=result.cards_mastered,
    )


@router.delete("/{session_id}", response_model=StudySessionRead)
def abandon_session(
    session_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionRead:
    """Mark the session abandoned; progress already auto-saved is kept."""

    session = service.abandon_session(session_id, user_id=current_user.id)
    return StudySessionRead.model_validate(session)
