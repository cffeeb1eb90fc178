from typing import Any, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies use the front end's camelCase keys (userName, commentDate, ...)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Field types stay loose: the entity setters raise InvalidField / OutOfRange,
# request parsing only rejects values of the wrong JSON type.

class SignUpRequest(CamelModel):
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_password: Optional[str] = None
    user_password_confirm: Optional[str] = None


class UserUpdate(CamelModel):
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class RouteRequest(CamelModel):
    route_name: Optional[str] = None
    route_description: Optional[str] = None
    route_file: Optional[str] = None
    route_speed_limit: Any = None
    route_type: Optional[str] = None


class CommentCreate(CamelModel):
    comment_route_id: Optional[str] = None
    comment_content: Optional[str] = None
    # Epoch milliseconds from the browser
    comment_date: Any = None


class CommentUpdate(CamelModel):
    comment_content: Optional[str] = None
