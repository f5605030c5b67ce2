from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from blogapi.app import App
from blogapi.core.modules.auth.models import Principal

# Raw header; the strict "Bearer <token>" parsing is done by the auth guard
authorization_header = APIKeyHeader(name="Authorization", auto_error=False, scheme_name="BearerAuth")


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def require_principal(
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Depends(authorization_header)] = None,
) -> Principal:
    """Authenticate the request from its Authorization header (401 on failure)."""
    return await app.authenticate(authorization)


async def require_admin(
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Depends(authorization_header)] = None,
) -> Principal:
    """Authenticate the request and require the admin role (401 / 403 on failure)."""
    return await app.authenticate_admin(authorization)


async def optional_principal(
    app: Annotated[App, Depends(get_app)],
    authorization: Annotated[str | None, Depends(authorization_header)] = None,
) -> Principal | None:
    """Authenticate the request if possible, otherwise continue anonymously."""
    return await app.authenticate_optional(authorization)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
PrincipalDep = Annotated[Principal, Depends(require_principal)]
AdminDep = Annotated[Principal, Depends(require_admin)]
OptionalPrincipalDep = Annotated[Principal | None, Depends(optional_principal)]
