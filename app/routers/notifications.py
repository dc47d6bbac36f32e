import uuid
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.db import get_session
from app.services import inbox
from app.utils.auth_helper import Actor, get_current_user_required


router = APIRouter()

@router.get("/")
def get_my_notifications(
    limit: int = 20,
    unread_only: bool = False,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    notifications = inbox.list_notifications(session, current_user.user_id, limit, unread_only)

    return {"notifications": notifications}

@router.get("/count")
def get_unread_notifications_count(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    return { "count": inbox.unread_count(session, current_user.user_id) }

@router.post("/{id}/mark-read")
def mark_notification_read(
    id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    inbox.mark_read(session, current_user.user_id, id)

    return {"ok": True}

@router.post("/mark-all-read")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    inbox.mark_all_read(session, current_user.user_id)

    return {"ok": True}
