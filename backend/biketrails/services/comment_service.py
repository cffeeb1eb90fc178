import logging
import uuid
from typing import Any, Dict, List
from sqlalchemy import select
from sqlalchemy.orm import Session

from biketrails.api.context import Reply, RequestContext
from biketrails.core.errors import InvalidField, NotFound, Unauthorized
from biketrails.models.comment import Comment
from biketrails.models.persistence import run_statement
from biketrails.models.route import Route
from biketrails.models.user import User
from biketrails.utils.validation import epoch_millis_to_datetime, validate_uuid

logger = logging.getLogger(__name__)

COMMENT_NOT_FOUND_MESSAGE = "Comment not found"


class CommentService:
    """Comment handlers plus the comments-with-authors read model used by the route map"""

    @staticmethod
    def get_comments_and_users_by_route_id(db: Session, route_id: Any) -> List[Dict[str, Any]]:
        """
        Comments on a route joined with their author's name, oldest first.

        This join lives here rather than on the entity: Comment only knows
        the author's id, the map view also wants the display name.
        """
        route_id = validate_uuid(route_id)
        comments = Comment.__table__
        users = User.__table__
        statement = (
            select(comments, users.c.user_name)
            .join(users, comments.c.comment_user_id == users.c.user_id)
            .where(comments.c.comment_route_id == route_id)
            .order_by(comments.c.comment_date, comments.c.comment_id)
        )
        entries = []
        for row in run_statement(db, statement, "comment lookup by route with users").all():
            values = dict(row._mapping)
            user_name = values.pop("user_name")
            entry = Comment(**values).to_dict()
            entry["userName"] = user_name
            entries.append(entry)
        return entries

    @staticmethod
    def get_comment(db: Session, context: RequestContext) -> Reply:
        comment = Comment.get_comment_by_comment_id(db, context.params.get("comment_id"))
        if comment is None:
            raise NotFound(COMMENT_NOT_FOUND_MESSAGE)
        return Reply(data=comment.to_dict())

    @staticmethod
    def list_comments(db: Session, context: RequestContext) -> Reply:
        route_id = context.params.get("comment_route_id")
        if not route_id:
            raise InvalidField("commentRouteId is required", field="commentRouteId")
        return Reply(data=CommentService.get_comments_and_users_by_route_id(db, route_id))

    @staticmethod
    def create_comment(db: Session, context: RequestContext) -> Reply:
        """
        Post a comment as the signed-in user.

        commentDate arrives as epoch milliseconds; a missing date means
        "now" and is stamped by Comment.insert().
        """
        context.verify_xsrf()
        user_id = context.require_user("you must be logged in to post comments")
        params = context.params

        route = Route.get_route_by_route_id(db, params.get("comment_route_id"))
        if route is None:
            raise NotFound("Route not found")

        comment_date = params.get("comment_date")
        if comment_date is not None:
            comment_date = epoch_millis_to_datetime(comment_date)

        comment = Comment(uuid.uuid4(), route.route_id, user_id, params.get("comment_content"), comment_date)
        comment.insert(db)
        db.commit()

        logger.info(f"User {user_id} commented on route {route.route_id}")
        return Reply(status=201, data=comment.to_dict(), message="Comment created OK")

    @staticmethod
    def update_comment(db: Session, context: RequestContext) -> Reply:
        """Authors may edit the content of their own comments; the date is kept"""
        context.verify_xsrf()
        comment = CommentService._own_comment(db, context)

        comment.comment_content = context.params.get("comment_content")
        comment.update(db)
        db.commit()
        return Reply(data=comment.to_dict(), message="Comment updated OK")

    @staticmethod
    def delete_comment(db: Session, context: RequestContext) -> Reply:
        context.verify_xsrf()
        comment = CommentService._own_comment(db, context)

        comment.delete(db)
        db.commit()
        return Reply(message="Comment deleted OK")

    @staticmethod
    def _own_comment(db: Session, context: RequestContext) -> Comment:
        user_id = context.require_user()
        comment = Comment.get_comment_by_comment_id(db, context.params.get("comment_id"))
        if comment is None:
            raise NotFound(COMMENT_NOT_FOUND_MESSAGE)
        if comment.comment_user_id != user_id:
            raise Unauthorized("you are not allowed to modify this comment")
        return comment


comment_service = CommentService()
