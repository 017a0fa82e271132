"""
Main FastAPI Application

FinSight API with all routes registered.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finsight.api.exceptions import AccountNotFoundError, OfferNotFoundError, UserNotFoundError
from finsight.api.public import router as public_router

logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title="FinSight API",
    description="Behavioral signals, personas, recommendations and debt payoff plans",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(public_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Error handlers
@app.exception_handler(ValueError)
async def value_error_handler(request, exc):
    """Handle ValueError exceptions."""
    return JSONResponse(
        status_code=400,
        content={"error": "Bad Request", "detail": str(exc)}
    )


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={"error": "User Not Found", "detail": exc.detail}
    )


@app.exception_handler(AccountNotFoundError)
async def account_not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={"error": "Account Not Found", "detail": exc.detail}
    )


@app.exception_handler(OfferNotFoundError)
async def offer_not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={"error": "Offer Not Found", "detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"error": "Validation Error", "detail": exc.errors()}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    """Handle generic HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP Exception", "detail": exc.detail}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions."""
    logger.exception("Unhandled error", extra={'path': request.url.path})
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "detail": str(exc)}
    )
