from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity, get_current_identity, require_admin
from stackit.database import get_db
from stackit.schemas import (
    MessageResponse,
    RoleUpdate,
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserMutation,
    UserProfileResponse,
    UserStatsResponse,
    UserUpdate,
)
from stackit.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"users": await user_service.get_users(db, identity)}


@router.post("", status_code=201, response_model=UserEnvelope)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return {"user": await user_service.create_user(db, data)}


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user_profile(db, user_id)


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: int, db: AsyncSession = Depends(get_db)):
    return {"stats": await user_service.get_user_stats(db, user_id)}


@router.put("/{user_id}", response_model=UserMutation)
async def update_user(
    user_id: int,
    data: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_user(db, user_id, identity, data)
    return {"message": "Profile updated successfully", "user": user}


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, user_id, identity)
    return {"message": "User deleted successfully"}


@router.put("/{user_id}/ban", response_model=UserMutation)
async def ban_user(
    user_id: int,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.ban_user(db, user_id, identity)
    return {"message": "User banned successfully", "user": user}


@router.put("/{user_id}/unban", response_model=UserMutation)
async def unban_user(
    user_id: int,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.unban_user(db, user_id, identity)
    return {"message": "User unbanned successfully", "user": user}


@router.put("/{user_id}/role", response_model=UserMutation)
async def set_role(
    user_id: int,
    data: RoleUpdate,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.set_role(db, user_id, identity, data.role)
    return {"message": "Role updated successfully", "user": user}
