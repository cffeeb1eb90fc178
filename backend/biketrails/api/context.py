import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from biketrails.core.errors import Unauthorized
from biketrails.core.security import xsrf_tokens_match


@dataclass
class RequestContext:
    """
    Everything a service needs to know about the inbound request.

    Built by the API layer (api/dependencies.py) and passed explicitly, so the
    services can be called from tests without a running server.
    params holds the parsed input: path and query values plus the request body.
    """
    method: str = "GET"
    user_id: Optional[uuid.UUID] = None
    xsrf_cookie: Optional[str] = None
    xsrf_header: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    def verify_xsrf(self) -> None:
        """Mutating requests must echo the XSRF cookie in the XSRF header"""
        if not xsrf_tokens_match(self.xsrf_cookie, self.xsrf_header):
            raise Unauthorized("invalid or missing XSRF token")

    def require_user(self, message: str = "you must be logged in to do that") -> uuid.UUID:
        if self.user_id is None:
            raise Unauthorized(message)
        return self.user_id


@dataclass
class Reply:
    """Uniform reply envelope: {status, data, message?}"""
    status: int = 200
    data: Any = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        body = {"status": self.status, "data": self.data}
        if self.message is not None:
            body["message"] = self.message
        return body
