from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from biketrails.core.database import get_db
from biketrails.api.context import RequestContext
from biketrails.api.dependencies import as_response, get_request_context
from biketrails.api.schemas import UserUpdate
from biketrails.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    context.params["user_id"] = user_id
    return as_response(user_service.get_user(db, context))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Update the signed-in user's own profile"""
    context.params.update(body.model_dump(), user_id=user_id)
    return as_response(user_service.update_user(db, context))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Delete the signed-in user's account and their comments"""
    context.params["user_id"] = user_id
    return as_response(user_service.delete_user(db, context))
