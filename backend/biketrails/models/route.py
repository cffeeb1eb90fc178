import enum
import uuid
from typing import Any, List, Optional

from sqlalchemy import Column, Enum, Integer, String, delete, insert, select, update
from sqlalchemy.orm import Session, validates

from biketrails.core.database import Base
from biketrails.core.errors import InvalidField, OutOfRange, PersistenceError
from biketrails.models.persistence import fetch_all, fetch_one, run_statement
from biketrails.models.types import BinaryUuid
from biketrails.utils.validation import require_string, sanitize_string, validate_uuid

ROUTE_NAME_MAX_LENGTH = 64
ROUTE_DESCRIPTION_MAX_LENGTH = 512
ROUTE_FILE_MAX_LENGTH = 255


class RouteType(str, enum.Enum):
    PAVED = "paved"
    UNPAVED = "unpaved"
    BIKE_LANE = "bike-lane"
    BIKE_ROUTE = "bike-route"

    @classmethod
    def parse(cls, value: Any) -> "RouteType":
        """Accept a member or its value in any letter case; anything else is InvalidField"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        allowed = ", ".join(member.value for member in cls)
        raise InvalidField(f"route type must be one of: {allowed}", field="routeType")


class Route(Base):
    """
    A named trail shown on the route map.

    route_file points at the coordinate sequence the map view draws (a path
    relative to the static assets or an http(s) URL); the geometry itself is
    not stored here.
    """
    __tablename__ = "routes"

    route_id = Column(BinaryUuid, primary_key=True)
    route_name = Column(String(ROUTE_NAME_MAX_LENGTH), nullable=False)
    route_description = Column(String(ROUTE_DESCRIPTION_MAX_LENGTH), nullable=False)
    route_file = Column(String(ROUTE_FILE_MAX_LENGTH), nullable=False)
    route_speed_limit = Column(Integer, nullable=False)
    # Stored as the enum value ("bike-lane"), not the member name
    route_type = Column(
        Enum(RouteType, native_enum=False, length=16, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
        index=True,
    )

    def __init__(
        self,
        route_id: uuid.UUID | str,
        route_name: str,
        route_description: str,
        route_file: str,
        route_speed_limit: int,
        route_type: RouteType | str,
    ):
        self.route_id = route_id
        self.route_name = route_name
        self.route_description = route_description
        self.route_file = route_file
        self.route_speed_limit = route_speed_limit
        self.route_type = route_type

    def __repr__(self):
        return f"<Route {self.route_name}>"

    @validates("route_id")
    def validate_route_id(self, key, value: Any) -> uuid.UUID:
        route_id = validate_uuid(value)
        current = self.__dict__.get("route_id")
        if current is not None and current != route_id:
            raise InvalidField("route id cannot change once assigned", field="routeId")
        return route_id

    @validates("route_name")
    def validate_route_name(self, key, value: Any) -> str:
        route_name = sanitize_string(require_string(value, "routeName"))
        if not route_name:
            raise InvalidField("route name is empty or insecure", field="routeName")
        if len(route_name) > ROUTE_NAME_MAX_LENGTH:
            raise OutOfRange(f"route name cannot be longer than {ROUTE_NAME_MAX_LENGTH} characters", field="routeName")
        return route_name

    @validates("route_description")
    def validate_route_description(self, key, value: Any) -> str:
        route_description = sanitize_string(require_string(value, "routeDescription"))
        if not route_description:
            raise InvalidField("route description is empty or insecure", field="routeDescription")
        if len(route_description) > ROUTE_DESCRIPTION_MAX_LENGTH:
            raise OutOfRange(
                f"route description cannot be longer than {ROUTE_DESCRIPTION_MAX_LENGTH} characters",
                field="routeDescription",
            )
        return route_description

    @validates("route_file")
    def validate_route_file(self, key, value: Any) -> str:
        route_file = sanitize_string(require_string(value, "routeFile"))
        if not route_file:
            raise InvalidField("route file is empty or insecure", field="routeFile")
        if any(character.isspace() for character in route_file):
            raise InvalidField("route file cannot contain whitespace", field="routeFile")
        if len(route_file) > ROUTE_FILE_MAX_LENGTH:
            raise OutOfRange(f"route file cannot be longer than {ROUTE_FILE_MAX_LENGTH} characters", field="routeFile")
        return route_file

    @validates("route_speed_limit")
    def validate_route_speed_limit(self, key, value: Any) -> int:
        # bool is an int subclass - True is not a speed limit
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidField("route speed limit must be an integer", field="routeSpeedLimit")
        if value < 0:
            raise OutOfRange("route speed limit cannot be negative", field="routeSpeedLimit")
        return value

    @validates("route_type")
    def validate_route_type(self, key, value: Any) -> RouteType:
        return RouteType.parse(value)

    def to_dict(self) -> dict:
        return {
            "routeId": str(self.route_id),
            "routeName": self.route_name,
            "routeDescription": self.route_description,
            "routeFile": self.route_file,
            "routeSpeedLimit": self.route_speed_limit,
            "routeType": self.route_type.value,
        }

    def insert(self, db: Session) -> None:
        statement = insert(Route.__table__).values(
            route_id=self.route_id,
            route_name=self.route_name,
            route_description=self.route_description,
            route_file=self.route_file,
            route_speed_limit=self.route_speed_limit,
            route_type=self.route_type,
        )
        run_statement(db, statement, "route insert")

    def update(self, db: Session) -> None:
        table = Route.__table__
        statement = (
            update(table)
            .where(table.c.route_id == self.route_id)
            .values(
                route_name=self.route_name,
                route_description=self.route_description,
                route_file=self.route_file,
                route_speed_limit=self.route_speed_limit,
                route_type=self.route_type,
            )
        )
        result = run_statement(db, statement, "route update")
        if result.rowcount == 0:
            raise PersistenceError(f"route {self.route_id} no longer exists")

    def delete(self, db: Session) -> None:
        """
        Remove the row. Comments reference routes without ON DELETE CASCADE,
        so deleting a commented route fails with ConflictError.
        """
        table = Route.__table__
        run_statement(db, delete(table).where(table.c.route_id == self.route_id), "route delete")

    @classmethod
    def get_route_by_route_id(cls, db: Session, route_id: Any) -> Optional["Route"]:
        route_id = validate_uuid(route_id)
        table = cls.__table__
        return fetch_one(db, cls, select(table).where(table.c.route_id == route_id), "route lookup by id")

    @classmethod
    def get_routes_by_route_type(cls, db: Session, route_type: Any) -> List["Route"]:
        route_type = RouteType.parse(route_type)
        table = cls.__table__
        statement = select(table).where(table.c.route_type == route_type).order_by(table.c.route_name)
        return fetch_all(db, cls, statement, "route lookup by type")

    @classmethod
    def get_all_routes(cls, db: Session) -> List["Route"]:
        table = cls.__table__
        return fetch_all(db, cls, select(table).order_by(table.c.route_name), "route listing")
