import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, String, delete, insert, select, update
from sqlalchemy.orm import Session, validates

from biketrails.core.database import Base
from biketrails.core.errors import InvalidField, OutOfRange, PersistenceError
from biketrails.models.persistence import fetch_all, fetch_one, run_statement
from biketrails.models.types import BinaryUuid
from biketrails.utils.validation import (
    datetime_to_epoch_millis,
    epoch_millis_to_datetime,
    require_string,
    sanitize_string,
    truncate_to_millis,
    validate_uuid,
)

COMMENT_CONTENT_MAX_LENGTH = 512


class Comment(Base):
    """
    A user's remark on a route.

    The foreign keys are enforced by the store; the entity only checks that
    both ids are well-formed UUIDs. comment_date may be left as None, in which
    case insert() stamps the current time.
    """
    __tablename__ = "comments"

    comment_id = Column(BinaryUuid, primary_key=True)
    # No ON DELETE CASCADE: routes with comments cannot be deleted, and account
    # removal deletes the user's comments explicitly
    comment_route_id = Column(BinaryUuid, ForeignKey("routes.route_id"), nullable=False, index=True)
    comment_user_id = Column(BinaryUuid, ForeignKey("users.user_id"), nullable=False, index=True)
    comment_content = Column(String(COMMENT_CONTENT_MAX_LENGTH), nullable=False)
    comment_date = Column(DateTime(timezone=True), nullable=False)

    def __init__(
        self,
        comment_id: uuid.UUID | str,
        comment_route_id: uuid.UUID | str,
        comment_user_id: uuid.UUID | str,
        comment_content: str,
        comment_date: datetime | int | None = None,
    ):
        self.comment_id = comment_id
        self.comment_route_id = comment_route_id
        self.comment_user_id = comment_user_id
        self.comment_content = comment_content
        self.comment_date = comment_date

    def __repr__(self):
        return f"<Comment {self.comment_id} route={self.comment_route_id}>"

    @validates("comment_id")
    def validate_comment_id(self, key, value: Any) -> uuid.UUID:
        comment_id = validate_uuid(value)
        current = self.__dict__.get("comment_id")
        if current is not None and current != comment_id:
            raise InvalidField("comment id cannot change once assigned", field="commentId")
        return comment_id

    @validates("comment_route_id")
    def validate_comment_route_id(self, key, value: Any) -> uuid.UUID:
        return validate_uuid(value)

    @validates("comment_user_id")
    def validate_comment_user_id(self, key, value: Any) -> uuid.UUID:
        return validate_uuid(value)

    @validates("comment_content")
    def validate_comment_content(self, key, value: Any) -> str:
        comment_content = sanitize_string(require_string(value, "commentContent"))
        if not comment_content:
            raise InvalidField("comment content is empty or insecure", field="commentContent")
        if len(comment_content) > COMMENT_CONTENT_MAX_LENGTH:
            raise OutOfRange(
                f"comment content cannot be longer than {COMMENT_CONTENT_MAX_LENGTH} characters",
                field="commentContent",
            )
        return comment_content

    @validates("comment_date")
    def validate_comment_date(self, key, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return truncate_to_millis(value)
        return truncate_to_millis(epoch_millis_to_datetime(value))

    def to_dict(self) -> dict:
        return {
            "commentId": str(self.comment_id),
            "commentRouteId": str(self.comment_route_id),
            "commentUserId": str(self.comment_user_id),
            "commentContent": self.comment_content,
            # Epoch milliseconds, the same form the front end posts
            "commentDate": datetime_to_epoch_millis(self.comment_date) if self.comment_date else None,
        }

    def insert(self, db: Session) -> None:
        if self.comment_date is None:
            self.comment_date = datetime.now(timezone.utc)
        statement = insert(Comment.__table__).values(
            comment_id=self.comment_id,
            comment_route_id=self.comment_route_id,
            comment_user_id=self.comment_user_id,
            comment_content=self.comment_content,
            comment_date=self.comment_date,
        )
        run_statement(db, statement, "comment insert")

    def update(self, db: Session) -> None:
        if self.comment_date is None:
            raise InvalidField("comment date is required to update a comment", field="commentDate")
        table = Comment.__table__
        statement = (
            update(table)
            .where(table.c.comment_id == self.comment_id)
            .values(
                comment_route_id=self.comment_route_id,
                comment_user_id=self.comment_user_id,
                comment_content=self.comment_content,
                comment_date=self.comment_date,
            )
        )
        result = run_statement(db, statement, "comment update")
        if result.rowcount == 0:
            raise PersistenceError(f"comment {self.comment_id} no longer exists")

    def delete(self, db: Session) -> None:
        table = Comment.__table__
        run_statement(db, delete(table).where(table.c.comment_id == self.comment_id), "comment delete")

    @classmethod
    def get_comment_by_comment_id(cls, db: Session, comment_id: Any) -> Optional["Comment"]:
        comment_id = validate_uuid(comment_id)
        table = cls.__table__
        return fetch_one(db, cls, select(table).where(table.c.comment_id == comment_id), "comment lookup by id")

    @classmethod
    def get_comments_by_comment_route_id(cls, db: Session, route_id: Any) -> List["Comment"]:
        """Comments on a route, oldest first"""
        route_id = validate_uuid(route_id)
        table = cls.__table__
        statement = (
            select(table)
            .where(table.c.comment_route_id == route_id)
            .order_by(table.c.comment_date, table.c.comment_id)
        )
        return fetch_all(db, cls, statement, "comment lookup by route")

    @classmethod
    def get_comments_by_comment_user_id(cls, db: Session, user_id: Any) -> List["Comment"]:
        user_id = validate_uuid(user_id)
        table = cls.__table__
        statement = (
            select(table)
            .where(table.c.comment_user_id == user_id)
            .order_by(table.c.comment_date, table.c.comment_id)
        )
        return fetch_all(db, cls, statement, "comment lookup by user")
