from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from biketrails.core.database import get_db
from biketrails.api.context import RequestContext
from biketrails.api.dependencies import as_response, get_request_context
from biketrails.api.schemas import CommentCreate, CommentUpdate
from biketrails.services.comment_service import comment_service

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/")
async def list_comments(
    comment_route_id: Optional[str] = Query(None, alias="commentRouteId"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Comments on a route with their authors' names, oldest first"""
    context.params["comment_route_id"] = comment_route_id
    return as_response(comment_service.list_comments(db, context))


@router.get("/{comment_id}")
async def get_comment(
    comment_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params["comment_id"] = comment_id
    return as_response(comment_service.get_comment(db, context))


@router.post("/", status_code=201)
async def create_comment(
    body: CommentCreate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params.update(body.model_dump())
    return as_response(comment_service.create_comment(db, context))


@router.put("/{comment_id}")
async def update_comment(
    comment_id: str,
    body: CommentUpdate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params.update(body.model_dump(), comment_id=comment_id)
    return as_response(comment_service.update_comment(db, context))


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params["comment_id"] = comment_id
    return as_response(comment_service.delete_comment(db, context))
