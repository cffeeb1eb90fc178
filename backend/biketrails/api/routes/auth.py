from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from biketrails.core.database import get_db
from biketrails.api.context import RequestContext
from biketrails.api.dependencies import as_response, get_request_context
from biketrails.api.schemas import SignUpRequest
from biketrails.services.user_service import user_service

router = APIRouter(tags=["auth"])


@router.post("/sign-up", status_code=201)
async def sign_up(
    body: SignUpRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Register a new, not yet activated, account"""
    context.params.update(body.model_dump())
    return as_response(user_service.sign_up(db, context))


@router.get("/activation/{activation}")
async def activate(
    activation: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Target of the link in the activation email"""
    context.params["activation"] = activation
    return as_response(user_service.activate(db, context))
