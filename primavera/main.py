# primavera/main.py

"""
Entry point for the API.
Storefront (menu, checkout, my orders, loyalty), back-office (orders, menu,
customers) and the ordering assistant, all on one FastAPI app.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# For Middleware block so browser can access the API
from fastapi.middleware.cors import CORSMiddleware

from primavera.config import configure_logging, get_settings
from primavera.errors import (
    InsufficientPointsError,
    InvalidTransitionError,
    NotFoundError,
    PrimaveraError,
    ProductInUseError,
    ValidationError,
)
from primavera.routers import assistant, customers, loyalty, menu, orders
from primavera.utils.db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("Prima Vera API ready")
    yield


app = FastAPI(title="Prima Vera Pizzeria API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (menu, orders):
    app.include_router(module.router)
    app.include_router(module.admin_router)
app.include_router(loyalty.router)
app.include_router(customers.router)
app.include_router(assistant.router)


# Map exception types to HTTP status codes; most specific first
ERROR_STATUS_CODES: list[tuple[type, int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (InsufficientPointsError, 409),
    (ProductInUseError, 409),
]


@app.exception_handler(PrimaveraError)
async def primavera_error_handler(request: Request, exc: PrimaveraError) -> JSONResponse:
    """Map PrimaveraError subclasses to appropriate HTTP responses."""
    status_code = next((code for kind, code in ERROR_STATUS_CODES if isinstance(exc, kind)), 500)
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    # If running directly, this allows 'python -m primavera.main' to work
    # BUT standard usage is 'uvicorn primavera.main:app --reload' from terminal
    uvicorn.run("primavera.main:app", host="0.0.0.0", port=8000, reload=True)
