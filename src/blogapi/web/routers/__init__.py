from blogapi.web.routers.admin import router as admin_router
from blogapi.web.routers.auth import router as auth_router
from blogapi.web.routers.blogs import router as blogs_router
from blogapi.web.routers.comments import router as comments_router
from blogapi.web.routers.users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "blogs_router",
    "comments_router",
    "users_router",
]
