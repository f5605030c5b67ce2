from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from blogapi.core.modules.user.models import Role, UserView
from blogapi.web.deps import AdminDep, AppDep, PrincipalDep
from blogapi.web.openapi import ErrorResponse
from blogapi.web.routers.auth import UserResponse

router = APIRouter(tags=["users"])


class UpdateProfileRequest(BaseModel):
    """Profile update; omitted fields are left unchanged."""

    bio: str | None = Field(None, description="Short biography", max_length=500)
    profile_picture: str | None = Field(None, description="Profile picture URL", max_length=2048)


class UpdateRoleRequest(BaseModel):
    role: Role = Field(..., description="New role")


@router.get(
    "/users/profile",
    summary="Get current user profile",
    description="Get authenticated user's profile information.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, principal: PrincipalDep) -> UserResponse:
    return UserResponse(user=await app.get_profile(principal))


@router.put(
    "/users/profile",
    summary="Update current user profile",
    operation_id="updateCurrentUserProfile",
    responses={
        200: {"description": "Updated profile"},
        400: {"model": ErrorResponse, "description": "Invalid profile data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_profile(profile_data: UpdateProfileRequest, app: AppDep, principal: PrincipalDep) -> UserResponse:
    user = await app.update_profile(principal, profile_data.bio, profile_data.profile_picture)
    return UserResponse(user=user)


@router.get(
    "/users",
    summary="List all users",
    description="Get all users in the system. Only accessible by admin users.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of all users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_users(app: AppDep, admin: AdminDep) -> list[UserView]:
    return await app.get_all_users(admin)


@router.put(
    "/users/{user_id}/role",
    summary="Change user role",
    description="Set the role of a user. The user's session is ended so new tokens carry the new role.",
    operation_id="updateUserRole",
    responses={
        200: {"description": "Updated user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def update_user_role(user_id: UUID, role_data: UpdateRoleRequest, app: AppDep, admin: AdminDep) -> UserResponse:
    return UserResponse(user=await app.update_user_role(admin, user_id, role_data.role))
