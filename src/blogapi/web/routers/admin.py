"""Session administration endpoints."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from blogapi.core.modules.session.models import SessionView
from blogapi.web.deps import AdminDep, AppDep
from blogapi.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["admin"])


class CleanupResponse(BaseModel):
    deleted: int = Field(..., description="Number of expired sessions removed", ge=0)


@router.get(
    "/admin/sessions/{username}",
    summary="Get user session",
    description="Get the current session of a user by username. Tokens are never returned.",
    operation_id="getUserSession",
    responses={
        200: {"description": "Session information"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User has no session"},
    },
)
async def get_session(username: str, app: AppDep, admin: AdminDep) -> SessionView:
    return await app.get_session_by_username(admin, username)


@router.delete(
    "/admin/sessions/{user_id}",
    summary="Force logout",
    description="Delete the session of a user. Succeeds when the user has no session.",
    operation_id="forceLogout",
    responses={
        200: {"description": "Session deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def force_logout(user_id: UUID, app: AppDep, admin: AdminDep) -> MessageResponse:
    await app.force_logout(admin, user_id)
    return MessageResponse(message="User logged out")


@router.post(
    "/admin/sessions/cleanup",
    summary="Delete expired sessions",
    operation_id="cleanupSessions",
    responses={
        200: {"description": "Expired sessions deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def cleanup_sessions(app: AppDep, admin: AdminDep) -> CleanupResponse:
    return CleanupResponse(deleted=await app.cleanup_expired_sessions(admin))
