from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity, get_current_identity
from stackit.database import get_db
from stackit.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    MessageResponse,
    NotificationListResponse,
    UnreadCountResponse,
)
from stackit.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return {"notifications": await notification_service.list_notifications(db, identity)}


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return {"unread_count": await notification_service.unread_count(db, identity)}


@router.put("/mark-all-read", response_model=MessageResponse)
async def mark_all_read(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.mark_all_read(db, identity)
    return {"message": "All notifications marked as read"}


@router.put("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.mark_read(db, notification_id, identity)
    return {"message": "Notification marked as read"}


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, notification_id, identity)
    return {"message": "Notification deleted successfully"}


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast(
    data: BroadcastRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    recipients = await notification_service.broadcast(db, identity, data.message, data.type)
    return {"message": "Broadcast message sent successfully", "recipients": recipients}
