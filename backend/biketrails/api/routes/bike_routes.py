from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from biketrails.core.database import get_db
from biketrails.api.context import RequestContext
from biketrails.api.dependencies import as_response, get_request_context
from biketrails.api.schemas import RouteRequest
from biketrails.services.route_service import route_service

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("/")
async def list_routes(
    route_type: Optional[str] = Query(None, alias="routeType", description="Only routes of this type"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params["route_type"] = route_type
    return as_response(route_service.list_routes(db, context))


@router.get("/{route_id}")
async def get_route(
    route_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params["route_id"] = route_id
    return as_response(route_service.get_route(db, context))


@router.post("/", status_code=201)
async def create_route(
    body: RouteRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params.update(body.model_dump())
    return as_response(route_service.create_route(db, context))


@router.put("/{route_id}")
async def update_route(
    route_id: str,
    body: RouteRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params.update(body.model_dump(), route_id=route_id)
    return as_response(route_service.update_route(db, context))


@router.delete("/{route_id}")
async def delete_route(
    route_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Refused with 409 while the route has comments"""
    context.params["route_id"] = route_id
    return as_response(route_service.delete_route(db, context))
