"""Blog post endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from blogapi.core.modules.blog.models import PostQuery, PostSort, PostView, ReactionType
from blogapi.core.pagination import PaginationResult
from blogapi.web.deps import AppDep, OptionalPrincipalDep, PrincipalDep
from blogapi.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["blogs"])


class CreatePostRequest(BaseModel):
    title: str = Field(..., description="Title, 5-255 characters")
    content: str = Field(..., description="Body text, at least 20 characters")
    tags: list[str] = Field(default_factory=list, description="Alphanumeric tags, 2-20 characters each")


class UpdatePostRequest(BaseModel):
    """Partial post update; omitted fields are left unchanged."""

    title: str | None = Field(None, description="New title")
    content: str | None = Field(None, description="New body text")
    tags: list[str] | None = Field(None, description="New tags, replacing the old ones")


@router.get(
    "/blogs",
    summary="List posts",
    description="Get a page of posts. Filters are combined; tags must all be present on a post.",
    operation_id="listPosts",
    responses={200: {"description": "Paginated list of posts"}},
)
async def list_posts(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 10,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
    sort: Annotated[PostSort, Query(description="Sort order")] = PostSort.NEWEST,
    title: Annotated[str | None, Query(description="Case-insensitive title substring")] = None,
    author: Annotated[str | None, Query(description="Author username")] = None,
    tags: Annotated[list[str] | None, Query(description="Required tags")] = None,
) -> PaginationResult[PostView]:
    query = PostQuery(title=title, author=author, tags=tags or [], sort=sort)
    return await app.list_posts(query, limit, offset)


@router.get(
    "/blogs/popular",
    summary="List popular posts",
    description="Most viewed posts, ties broken by likes.",
    operation_id="listPopularPosts",
    responses={200: {"description": "Popular posts"}},
)
async def list_popular_posts(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=50, description="Maximum items to return")] = 10,
) -> list[PostView]:
    return await app.list_popular_posts(limit)


@router.get(
    "/blogs/{post_id}",
    summary="Get post",
    description="Get a post with its comments. Authentication is optional and only adds the caller's reaction.",
    operation_id="getPost",
    responses={
        200: {"description": "Post details"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def get_post(post_id: UUID, app: AppDep, viewer: OptionalPrincipalDep) -> PostView:
    return await app.get_post(post_id, viewer)


@router.post(
    "/blogs",
    summary="Create post",
    operation_id="createPost",
    status_code=201,
    responses={
        201: {"description": "Post created"},
        400: {"model": ErrorResponse, "description": "Invalid post data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_post(post_data: CreatePostRequest, app: AppDep, principal: PrincipalDep) -> PostView:
    return await app.create_post(principal, post_data.title, post_data.content, post_data.tags)


@router.put(
    "/blogs/{post_id}",
    summary="Update post",
    description="Update a post. Only the author or an admin can update it.",
    operation_id="updatePost",
    responses={
        200: {"description": "Post updated"},
        400: {"model": ErrorResponse, "description": "Invalid post data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def update_post(post_id: UUID, post_data: UpdatePostRequest, app: AppDep, principal: PrincipalDep) -> PostView:
    return await app.update_post(principal, post_id, post_data.title, post_data.content, post_data.tags)


@router.delete(
    "/blogs/{post_id}",
    summary="Delete post",
    description="Delete a post with its comments. Only the author or an admin can delete it.",
    operation_id="deletePost",
    status_code=204,
    responses={
        204: {"description": "Post deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def delete_post(post_id: UUID, app: AppDep, principal: PrincipalDep) -> None:
    await app.delete_post(principal, post_id)


@router.post(
    "/blogs/{post_id}/like",
    summary="Like post",
    description="Toggle a like. Liking removes an existing dislike; liking twice removes the like.",
    operation_id="likePost",
    responses={
        200: {"description": "Post with updated counters"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def like_post(post_id: UUID, app: AppDep, principal: PrincipalDep) -> PostView:
    return await app.react_to_post(principal, post_id, ReactionType.LIKE)


@router.post(
    "/blogs/{post_id}/dislike",
    summary="Dislike post",
    description="Toggle a dislike. Disliking removes an existing like; disliking twice removes the dislike.",
    operation_id="dislikePost",
    responses={
        200: {"description": "Post with updated counters"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def dislike_post(post_id: UUID, app: AppDep, principal: PrincipalDep) -> PostView:
    return await app.react_to_post(principal, post_id, ReactionType.DISLIKE)
