import uuid
from sqlalchemy.types import LargeBinary, TypeDecorator


class BinaryUuid(TypeDecorator):
    """
    UUID stored as its 16 raw bytes instead of the 36 character text form.

    Python side values are always uuid.UUID; the entity setters guarantee that
    before anything reaches a statement.
    """

    impl = LargeBinary(16)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value.bytes

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return uuid.UUID(bytes=bytes(value))
