import logging
import uuid
from sqlalchemy.orm import Session

from biketrails.api.context import Reply, RequestContext
from biketrails.core.errors import ConflictError, NotFound
from biketrails.models.route import Route

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND_MESSAGE = "Route not found"

# Request parameter -> Route attribute, in constructor order
_ROUTE_FIELDS = (
    "route_name",
    "route_description",
    "route_file",
    "route_speed_limit",
    "route_type",
)


class RouteService:
    @staticmethod
    def get_route(db: Session, context: RequestContext) -> Reply:
        route = Route.get_route_by_route_id(db, context.params.get("route_id"))
        if route is None:
            raise NotFound(ROUTE_NOT_FOUND_MESSAGE)
        return Reply(data=route.to_dict())

    @staticmethod
    def list_routes(db: Session, context: RequestContext) -> Reply:
        """All routes, or only those of one type when route_type is given"""
        route_type = context.params.get("route_type")
        if route_type:
            routes = Route.get_routes_by_route_type(db, route_type)
        else:
            routes = Route.get_all_routes(db)
        return Reply(data=[route.to_dict() for route in routes])

    @staticmethod
    def create_route(db: Session, context: RequestContext) -> Reply:
        """Any signed-in user may contribute a route"""
        context.verify_xsrf()
        context.require_user("you must be logged in to add routes")

        route = Route(uuid.uuid4(), *(context.params.get(name) for name in _ROUTE_FIELDS))
        route.insert(db)
        db.commit()

        logger.info(f"Created route {route.route_id} ({route.route_name})")
        return Reply(status=201, data=route.to_dict(), message="Route created OK")

    @staticmethod
    def update_route(db: Session, context: RequestContext) -> Reply:
        context.verify_xsrf()
        context.require_user("you must be logged in to edit routes")

        route = Route.get_route_by_route_id(db, context.params.get("route_id"))
        if route is None:
            raise NotFound(ROUTE_NOT_FOUND_MESSAGE)

        # Only the fields present in the request change
        for name in _ROUTE_FIELDS:
            value = context.params.get(name)
            if value is not None:
                setattr(route, name, value)

        route.update(db)
        db.commit()
        return Reply(data=route.to_dict(), message="Route updated OK")

    @staticmethod
    def delete_route(db: Session, context: RequestContext) -> Reply:
        context.verify_xsrf()
        context.require_user("you must be logged in to delete routes")

        route = Route.get_route_by_route_id(db, context.params.get("route_id"))
        if route is None:
            raise NotFound(ROUTE_NOT_FOUND_MESSAGE)

        try:
            route.delete(db)
        except ConflictError as exc:
            raise ConflictError("route still has comments and cannot be deleted", field="routeId") from exc
        db.commit()
        return Reply(message="Route deleted OK")


route_service = RouteService()
