import uuid
from typing import Any, Optional

from argon2 import Type, extract_parameters
from argon2.exceptions import InvalidHashError
from email_validator import EmailNotValidError, validate_email
from sqlalchemy import Column, String, delete, insert, select, update
from sqlalchemy.orm import Session, validates

from biketrails.core.database import Base
from biketrails.core.errors import InvalidField, OutOfRange, PersistenceError
from biketrails.models.persistence import fetch_one, run_statement
from biketrails.models.types import BinaryUuid
from biketrails.utils.validation import is_hex, require_string, sanitize_string, validate_uuid

USER_NAME_MAX_LENGTH = 32
USER_EMAIL_MAX_LENGTH = 128
USER_HASH_LENGTH = 97
ACTIVATION_TOKEN_LENGTH = 32


class User(Base):
    """
    User model representing an account of the trails community.

    Every field is validated at assignment, so an instance can never hold an
    invalid value: a failed assignment keeps the previous value, and a failed
    constructor returns no instance at all.

    The entity never hashes passwords itself. user_hash must already be an
    Argon2i encoding (see core.security.get_password_hash).
    A non-null activation token means the account has not been activated yet.
    """
    __tablename__ = "users"

    user_id = Column(BinaryUuid, primary_key=True)
    # Name and email are unique - sign-up relies on the store to catch races
    user_name = Column(String(USER_NAME_MAX_LENGTH), unique=True, nullable=False)
    user_email = Column(String(USER_EMAIL_MAX_LENGTH), unique=True, nullable=False)
    user_hash = Column(String(USER_HASH_LENGTH), nullable=False)
    user_activation_token = Column(String(ACTIVATION_TOKEN_LENGTH), nullable=True, index=True)

    def __init__(
        self,
        user_id: uuid.UUID | str,
        user_name: str,
        user_email: str,
        user_hash: str,
        user_activation_token: Optional[str] = None,
    ):
        self.user_id = user_id
        self.user_name = user_name
        self.user_email = user_email
        self.user_hash = user_hash
        self.user_activation_token = user_activation_token

    def __repr__(self):
        return f"<User {self.user_name}>"

    @validates("user_id")
    def validate_user_id(self, key, value: Any) -> uuid.UUID:
        user_id = validate_uuid(value)
        current = self.__dict__.get("user_id")
        if current is not None and current != user_id:
            raise InvalidField("user id cannot change once assigned", field="userId")
        return user_id

    @validates("user_name")
    def validate_user_name(self, key, value: Any) -> str:
        user_name = sanitize_string(require_string(value, "userName"))
        if not user_name:
            raise InvalidField("user name is empty or insecure", field="userName")
        if len(user_name) > USER_NAME_MAX_LENGTH:
            raise OutOfRange(f"user name cannot be longer than {USER_NAME_MAX_LENGTH} characters", field="userName")
        return user_name

    @validates("user_email")
    def validate_user_email(self, key, value: Any) -> str:
        user_email = require_string(value, "userEmail").strip()
        if not user_email:
            raise InvalidField("user email is empty or insecure", field="userEmail")
        try:
            # Syntax only - deliverability is proven later by the activation email
            validate_email(user_email, check_deliverability=False)
        except EmailNotValidError as exc:
            raise InvalidField("user email is not a valid email address", field="userEmail") from exc
        if len(user_email) > USER_EMAIL_MAX_LENGTH:
            raise OutOfRange(f"user email cannot be longer than {USER_EMAIL_MAX_LENGTH} characters", field="userEmail")
        return user_email

    @validates("user_hash")
    def validate_user_hash(self, key, value: Any) -> str:
        user_hash = require_string(value, "userHash").strip()
        if not user_hash:
            raise InvalidField("user password hash is empty or insecure", field="userHash")
        if len(user_hash) != USER_HASH_LENGTH:
            raise OutOfRange(f"user hash must be {USER_HASH_LENGTH} characters", field="userHash")
        try:
            parameters = extract_parameters(user_hash)
        except InvalidHashError as exc:
            raise InvalidField("user hash is not a valid hash", field="userHash") from exc
        if parameters.type is not Type.I:
            raise InvalidField("user hash is not an argon2i hash", field="userHash")
        return user_hash

    @validates("user_activation_token")
    def validate_user_activation_token(self, key, value: Any) -> Optional[str]:
        if value is None:
            return None
        token = require_string(value, "userActivationToken").strip().lower()
        if not is_hex(token):
            raise OutOfRange("user activation token is not hexadecimal", field="userActivationToken")
        if len(token) != ACTIVATION_TOKEN_LENGTH:
            raise OutOfRange(
                f"user activation token must be {ACTIVATION_TOKEN_LENGTH} characters", field="userActivationToken"
            )
        return token

    def to_dict(self) -> dict:
        """JSON form for replies - the hash and activation token never leave the server"""
        return {
            "userId": str(self.user_id),
            "userName": self.user_name,
            "userEmail": self.user_email,
        }

    def insert(self, db: Session) -> None:
        statement = insert(User.__table__).values(
            user_id=self.user_id,
            user_name=self.user_name,
            user_email=self.user_email,
            user_hash=self.user_hash,
            user_activation_token=self.user_activation_token,
        )
        run_statement(db, statement, "user insert")

    def update(self, db: Session) -> None:
        table = User.__table__
        statement = (
            update(table)
            .where(table.c.user_id == self.user_id)
            .values(
                user_name=self.user_name,
                user_email=self.user_email,
                user_hash=self.user_hash,
                user_activation_token=self.user_activation_token,
            )
        )
        result = run_statement(db, statement, "user update")
        if result.rowcount == 0:
            raise PersistenceError(f"user {self.user_id} no longer exists")

    def delete(self, db: Session) -> None:
        """Remove the row. Comments written by this user must be handled by the caller first."""
        table = User.__table__
        run_statement(db, delete(table).where(table.c.user_id == self.user_id), "user delete")

    @classmethod
    def get_user_by_user_id(cls, db: Session, user_id: Any) -> Optional["User"]:
        user_id = validate_uuid(user_id)
        table = cls.__table__
        return fetch_one(db, cls, select(table).where(table.c.user_id == user_id), "user lookup by id")

    @classmethod
    def get_user_by_user_name(cls, db: Session, user_name: Any) -> Optional["User"]:
        user_name = sanitize_string(require_string(user_name, "userName"))
        if not user_name:
            raise InvalidField("user name is empty or insecure", field="userName")
        table = cls.__table__
        return fetch_one(db, cls, select(table).where(table.c.user_name == user_name), "user lookup by name")

    @classmethod
    def get_user_by_user_email(cls, db: Session, user_email: Any) -> Optional["User"]:
        user_email = require_string(user_email, "userEmail").strip()
        if not user_email:
            raise InvalidField("user email is empty or insecure", field="userEmail")
        table = cls.__table__
        return fetch_one(db, cls, select(table).where(table.c.user_email == user_email), "user lookup by email")

    @classmethod
    def get_user_by_user_activation_token(cls, db: Session, token: Any) -> Optional["User"]:
        token = require_string(token, "userActivationToken").strip().lower()
        if not is_hex(token) or len(token) != ACTIVATION_TOKEN_LENGTH:
            raise OutOfRange(
                f"user activation token must be {ACTIVATION_TOKEN_LENGTH} hexadecimal characters",
                field="userActivationToken",
            )
        table = cls.__table__
        return fetch_one(
            db, cls, select(table).where(table.c.user_activation_token == token), "user lookup by activation token"
        )
