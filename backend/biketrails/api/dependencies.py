from typing import Optional
from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from biketrails.api.context import Reply, RequestContext
from biketrails.core.config import settings
from biketrails.core.database import get_db
from biketrails.core.errors import InvalidIdentifier, Unauthorized
from biketrails.core.security import decode_access_token
from biketrails.models.user import User

# Bearer scheme - extracts token from Authorization header
# auto_error=False: anonymous requests are allowed through, services decide
# whether the action needs a signed-in user
bearer_scheme = HTTPBearer(auto_error=False)


def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> RequestContext:
    """
    Build the explicit request context the services work from.

    Issuing tokens belongs to the session layer; here a token is only
    verified and resolved to an existing, activated account.
    A present but bad token is rejected instead of being treated as anonymous.
    """
    context = RequestContext(
        method=request.method,
        xsrf_cookie=request.cookies.get(settings.XSRF_COOKIE_NAME),
        xsrf_header=request.headers.get(settings.XSRF_HEADER_NAME),
    )
    if credentials is None:
        return context

    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise Unauthorized("Could not validate credentials")

    try:
        user = User.get_user_by_user_id(db, payload["sub"])
    except InvalidIdentifier as exc:
        raise Unauthorized("Could not validate credentials") from exc
    if user is None:
        raise Unauthorized("Could not validate credentials")
    # Accounts with a pending activation token cannot act yet
    if user.user_activation_token is not None:
        raise Unauthorized("User account is not activated")

    context.user_id = user.user_id
    return context


def as_response(reply: Reply) -> JSONResponse:
    """HTTP status mirrors the envelope status"""
    return JSONResponse(status_code=reply.status, content=reply.to_dict())
