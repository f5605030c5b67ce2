"""Comment-related API endpoints."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from blogapi.core.modules.blog.models import Comment
from blogapi.web.deps import AppDep, PrincipalDep
from blogapi.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["comments"])


class CommentRequest(BaseModel):
    """Comment text for create and update."""

    content: str = Field(..., description="The comment text, 1-2000 characters")


@router.post(
    "/blogs/{post_id}/comments",
    summary="Create comment",
    operation_id="createComment",
    status_code=201,
    responses={
        201: {"description": "Comment created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid comment text"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def create_comment(post_id: UUID, request: CommentRequest, app: AppDep, principal: PrincipalDep) -> Comment:
    return await app.add_comment(principal, post_id, request.content)


@router.put(
    "/blogs/{post_id}/comments/{comment_id}",
    summary="Update comment",
    description="Edit a comment. Only its author can edit it.",
    operation_id="updateComment",
    responses={
        200: {"description": "Comment updated"},
        400: {"model": ErrorResponse, "description": "Invalid comment text"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the comment author"},
        404: {"model": ErrorResponse, "description": "Post or comment not found"},
    },
)
async def update_comment(
    post_id: UUID, comment_id: UUID, request: CommentRequest, app: AppDep, principal: PrincipalDep
) -> Comment:
    return await app.update_comment(principal, post_id, comment_id, request.content)


@router.delete(
    "/blogs/{post_id}/comments/{comment_id}",
    summary="Delete comment",
    description="Delete a comment. Allowed for the comment author, the post author and admins.",
    operation_id="deleteComment",
    status_code=204,
    responses={
        204: {"description": "Comment deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed to delete this comment"},
        404: {"model": ErrorResponse, "description": "Post or comment not found"},
    },
)
async def delete_comment(post_id: UUID, comment_id: UUID, app: AppDep, principal: PrincipalDep) -> None:
    await app.delete_comment(principal, post_id, comment_id)
