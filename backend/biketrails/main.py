import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from biketrails.core.config import settings
from biketrails.core.database import engine, Base
from biketrails.core.errors import BikeTrailsError
from biketrails.core.security import generate_xsrf_token
from biketrails.api.context import Reply
from biketrails.api.routes import auth, bike_routes, comments, users
# Import models so their tables are registered on Base.metadata
from biketrails.models import comment, route, user  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create database tables from all models that inherit from Base on startup.

    In production, use migrations instead of create_all.
    """
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Bike Trails API",
    description="Routes, comments and accounts for the bike trails community",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware - allows frontend to make requests to backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,  # The XSRF cookie must travel with requests
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def set_xsrf_cookie(request: Request, call_next):
    """
    Hand out the double-submit XSRF token on reads.

    The front end copies the cookie into the X-XSRF-TOKEN header on every
    mutating request; services reject requests where the two differ.
    """
    response = await call_next(request)
    if request.method == "GET" and settings.XSRF_COOKIE_NAME not in request.cookies:
        # Readable by the front end's script, so not httponly
        response.set_cookie(settings.XSRF_COOKIE_NAME, generate_xsrf_token(), samesite="lax")
    return response


@app.exception_handler(BikeTrailsError)
async def handle_bike_trails_error(request: Request, exc: BikeTrailsError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    reply = Reply(status=exc.status_code, message=exc.message)
    return JSONResponse(status_code=reply.status, content=reply.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    # Malformed body or query string - same envelope as entity validation errors
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    reply = Reply(status=400, message=f"Malformed request: {details}")
    return JSONResponse(status_code=reply.status, content=reply.to_dict())


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError):
    # Failures outside an entity statement, e.g. at commit
    logger.error(f"Database error on {request.method} {request.url.path}: {str(exc)}")
    reply = Reply(status=500, message="Database error occurred")
    return JSONResponse(status_code=reply.status, content=reply.to_dict())


# Register API route modules
# All routes are prefixed with /api for consistency
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(bike_routes.router, prefix="/api")
app.include_router(comments.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {"message": "Bike Trails API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint - used by monitoring/deployment tools"""
    return {"status": "healthy"}
