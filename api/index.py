"""
BKPOP Storefront - Cart API Application

Single entry point for the server-side cart endpoints.
"""
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bkpop.errors import CartError, CODE_VALIDATION, CODE_UNKNOWN, ERROR_INVALID_REQUEST, ERROR_INTERNAL
from bkpop.logging import get_logger
from bkpop.models import ApiResponse
from bkpop.routers.cart import router as cart_router

logger = get_logger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


app = FastAPI(
    title="BKPOP Cart API",
    description="Per-user shopping cart for the BKPOP printing storefront",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart_router, prefix="/api")


# ==================== ERROR HANDLERS ====================

@app.exception_handler(CartError)
async def cart_error_handler(request: Request, exc: CartError):
    """Render cart failures as error envelopes."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.fail(exc.message, exc.code).to_json(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and wrongly typed fields get the same envelope."""
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = f"{ERROR_INVALID_REQUEST}: {', '.join(fields)}" if fields else ERROR_INVALID_REQUEST
    return JSONResponse(
        status_code=400,
        content=ApiResponse.fail(message, CODE_VALIDATION).to_json(),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ApiResponse.fail(ERROR_INTERNAL, CODE_UNKNOWN).to_json(),
    )


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "bkpop-cart"}
