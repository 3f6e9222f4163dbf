"""
Main FastAPI application entry point for the Identity Resolution Service
This file sets up the FastAPI application with configuration, middleware,
error handling and the /identify endpoint. It serves as the entry point for
both local development (uvicorn) and AWS Lambda deployment (Mangum).
"""

import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import db_manager
from exceptions import IdentityResolutionError, NoPrimaryFoundError, PersistenceError, ResolutionConflictError
from schemas.identify import ErrorResponse, IdentifyRequest, IdentifyResponse
from services.identity_service import IdentityService, identity_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Unable to process identity resolution request"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        await db_manager.create_tables()
    yield
    await db_manager.dispose()


# Create FastAPI application instance
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_identity_service() -> IdentityService:
    return identity_service


def _internal_error_response() -> JSONResponse:
    error_response = ErrorResponse(
        error="InternalServerError",
        message=INTERNAL_ERROR_MESSAGE
    )
    return JSONResponse(status_code=500, content=error_response.model_dump())


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body validation errors as 400s"""
    logger.warning(f"Validation error for {request.url}: {exc.errors()}")

    error_details = []
    for error in exc.errors():
        error_details.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    error_response = ErrorResponse(
        error="ValidationError",
        message="Request validation failed",
        details={"errors": error_details}
    )

    return JSONResponse(
        status_code=400,
        content=error_response.model_dump()
    )


@app.exception_handler(NoPrimaryFoundError)
async def consistency_fault_handler(request: Request, exc: NoPrimaryFoundError):
    """Merge candidates without a primary: stored links are corrupt"""
    logger.critical(
        f"DATA INTEGRITY FAULT for {request.url}: {exc}. "
        f"Contacts {exc.root_ids} are referenced as roots but none is primary"
    )
    return _internal_error_response()


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Persistence error for {request.url}: {exc.__cause__ or exc}")
    return _internal_error_response()


@app.exception_handler(ResolutionConflictError)
async def resolution_conflict_handler(request: Request, exc: ResolutionConflictError):
    logger.warning(f"Resolution conflict for {request.url}: {exc}")
    return _internal_error_response()


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Anything that escapes the endpoints and the handlers above"""
    logger.error(f"Unhandled error for {request.url}: {exc}")
    logger.error(f"Traceback: {''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}")
    return _internal_error_response()


@app.get("/")
async def root():
    """
    Root endpoint that returns basic API information
    """
    return {
        "message": "Identity Resolution API is running",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer health checks
    """
    try:
        db_status = "connected" if await db_manager.test_connection() else "disconnected"
    except Exception as e:
        logger.error(f"Health check could not reach the database: {e}")
        db_status = "error"

    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "lambda": settings.is_lambda_environment(),
        "database": {"status": db_status}
    }


@app.post("/identify", response_model=IdentifyResponse)
async def identify_endpoint(
    request: IdentifyRequest,
    service: IdentityService = Depends(get_identity_service)
):
    """
    Main identity resolution endpoint

    Resolves the email and/or phone number to one consolidated identity,
    creating a primary contact, adding a secondary contact, or merging
    existing identities as needed.

    **Algorithm:**
    1. Find existing contacts matching email or phone
    2. If they belong to several primaries → the oldest stays primary, the rest are linked under it
    3. If no matches → create new primary contact
    4. If the request carries an unseen email or phone → create secondary contact
    5. Return consolidated contact information (primary's values first)
    """
    logger.info(f"Processing identify request: email={request.email}, phone={request.phoneNumber}")

    try:
        response = await service.identify_contact(request)
    except IdentityResolutionError:
        raise
    except Exception as e:
        logger.error(f"Error in identify endpoint: {e}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return _internal_error_response()

    logger.info(f"Successfully processed request. Primary contact ID: {response.contact.primaryContactId}")
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1
    )
