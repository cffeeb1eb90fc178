import logging
import uuid
from sqlalchemy.orm import Session

from biketrails.api.context import Reply, RequestContext
from biketrails.core.errors import ConflictError, InvalidField, NotFound, OutOfRange, Unauthorized
from biketrails.core.security import generate_activation_token, get_password_hash
from biketrails.models.comment import Comment
from biketrails.models.user import User
from biketrails.utils.validation import validate_uuid

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
USER_NOT_FOUND_MESSAGE = "User not found"


class UserService:
    """Sign-up, activation and account management on top of the User entity"""

    @staticmethod
    def sign_up(db: Session, context: RequestContext) -> Reply:
        """
        Create an account that still needs activating.

        The password is hashed here (Argon2i) and the entity only ever sees
        the hash. Name/email uniqueness is checked up front for a clear
        message; a concurrent duplicate is still caught by the unique
        constraints and surfaces as ConflictError from insert().
        """
        context.verify_xsrf()
        params = context.params

        password = params.get("user_password")
        password_confirm = params.get("user_password_confirm")
        if not isinstance(password, str) or not password:
            raise InvalidField("password is required", field="userPassword")
        if password != password_confirm:
            raise InvalidField("passwords do not match", field="userPasswordConfirm")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise OutOfRange(
                f"password must be at least {PASSWORD_MIN_LENGTH} characters", field="userPassword"
            )

        user = User(
            uuid.uuid4(),
            params.get("user_name"),
            params.get("user_email"),
            get_password_hash(password),
            generate_activation_token(),
        )

        if User.get_user_by_user_name(db, user.user_name) is not None:
            raise ConflictError("user name is already taken", field="userName")
        if User.get_user_by_user_email(db, user.user_email) is not None:
            raise ConflictError("an account with this email already exists", field="userEmail")

        user.insert(db)
        db.commit()

        # Delivering the activation link is handled by the mailer, outside this service
        logger.info(f"Signed up user {user.user_id}; activation pending")
        return Reply(
            status=201,
            data=user.to_dict(),
            message="Thank you for signing up, please check your email to activate your account",
        )

    @staticmethod
    def activate(db: Session, context: RequestContext) -> Reply:
        user = User.get_user_by_user_activation_token(db, context.params.get("activation"))
        if user is None:
            raise NotFound("account has already been activated or the link is invalid")

        # Clearing the token is what records the activation
        user.user_activation_token = None
        user.update(db)
        db.commit()

        logger.info(f"Activated user {user.user_id}")
        return Reply(message="Thank you for activating your account")

    @staticmethod
    def get_user(db: Session, context: RequestContext) -> Reply:
        user = User.get_user_by_user_id(db, context.params.get("user_id"))
        if user is None:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        return Reply(data=user.to_dict())

    @staticmethod
    def update_user(db: Session, context: RequestContext) -> Reply:
        """Change the acting user's own name and/or email"""
        context.verify_xsrf()
        user = UserService._own_account(db, context)

        params = context.params
        if params.get("user_name") is not None:
            user.user_name = params["user_name"]
        if params.get("user_email") is not None:
            user.user_email = params["user_email"]

        user.update(db)
        db.commit()
        return Reply(data=user.to_dict(), message="User updated OK")

    @staticmethod
    def delete_user(db: Session, context: RequestContext) -> Reply:
        """
        Remove the acting user's account.

        The entity does not cascade, so the user's comments are deleted first;
        both happen in the request's single transaction.
        """
        context.verify_xsrf()
        user = UserService._own_account(db, context)

        comments = Comment.get_comments_by_comment_user_id(db, user.user_id)
        for comment in comments:
            comment.delete(db)
        user.delete(db)
        db.commit()

        logger.info(f"Deleted user {user.user_id} and {len(comments)} comment(s)")
        return Reply(message="User deleted OK")

    @staticmethod
    def _own_account(db: Session, context: RequestContext) -> User:
        acting_user_id = context.require_user()
        target_user_id = validate_uuid(context.params.get("user_id"))
        if acting_user_id != target_user_id:
            raise Unauthorized("you are not allowed to modify this account")
        user = User.get_user_by_user_id(db, target_user_id)
        if user is None:
            raise NotFound(USER_NOT_FOUND_MESSAGE)
        return user


user_service = UserService()
