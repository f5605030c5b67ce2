from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from blogapi.core.db import MongoModel
from blogapi.utils import now


class ReactionType(StrEnum):
    LIKE = "like"
    DISLIKE = "dislike"


class PostSort(StrEnum):
    NEWEST = "newest"
    POPULAR = "popular"


class Comment(BaseModel):
    """Comment embedded in a post."""

    id: UUID = Field(default_factory=uuid4)
    author_id: UUID
    author_username: str
    content: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class Post(MongoModel):
    """Blog post with embedded comments and reactions.

    Indexed on author_id, author_username, tags, created_at, view_count, like_count.
    Counters are kept in step with the lists by the store's atomic updates.
    """

    title: str
    content: str
    author_id: UUID
    author_username: str
    tags: list[str] = []
    view_count: int = 0
    like_count: int = 0
    dislike_count: int = 0
    comment_count: int = 0
    likes: list[UUID] = []
    dislikes: list[UUID] = []
    comments: list[Comment] = []
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    def get_comment(self, comment_id: UUID) -> Comment | None:
        return next((c for c in self.comments if c.id == comment_id), None)


class PostQuery(BaseModel):
    """Listing filters; all given filters must match."""

    title: str | None = None  # Case-insensitive substring
    author: str | None = None  # Exact author username
    tags: list[str] = []  # Post must carry all of them
    sort: PostSort = PostSort.NEWEST


class PostView(BaseModel):
    """Blog post (API representation)."""

    id: UUID = Field(..., description="Post ID")
    title: str = Field(..., description="Title")
    content: str = Field(..., description="Body text")
    author_id: UUID = Field(..., description="Author user ID")
    author_username: str = Field(..., description="Author username")
    tags: list[str] = Field(..., description="Tags")
    view_count: int = Field(..., description="Number of views")
    like_count: int = Field(..., description="Number of likes")
    dislike_count: int = Field(..., description="Number of dislikes")
    comment_count: int = Field(..., description="Number of comments")
    comments: list[Comment] = Field(..., description="Comments, oldest first")
    my_reaction: ReactionType | None = Field(None, description="Reaction of the current user, if authenticated")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last modification time")

    @classmethod
    def from_domain(cls, post: Post, viewer_id: UUID | None = None) -> "PostView":
        my_reaction = None
        if viewer_id is not None:
            if viewer_id in post.likes:
                my_reaction = ReactionType.LIKE
            elif viewer_id in post.dislikes:
                my_reaction = ReactionType.DISLIKE
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            author_username=post.author_username,
            tags=post.tags,
            view_count=post.view_count,
            like_count=post.like_count,
            dislike_count=post.dislike_count,
            comment_count=post.comment_count,
            comments=post.comments,
            my_reaction=my_reaction,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
