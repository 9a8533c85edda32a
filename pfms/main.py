"""
PFMS — FastAPI Backend
Main entry point. Registers routers and error handlers and initializes the database.
"""

import os
import logging
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from ~/PFMS/.env first (deployed config), then fall back to
# CWD/.env (development). Second call is a no-op for vars already set.
load_dotenv(dotenv_path=Path.home() / "PFMS" / ".env")
load_dotenv()

from .auth import AuthError  # noqa: E402
from .database import init_db  # noqa: E402
from .migrations import run_migrations  # noqa: E402
from .routers import transaction_import  # noqa: E402
from .services.workbook_reader import FormatError  # noqa: E402

VERSION = "0.1.0"

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("PFMS_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run on startup: create tables, then migrate older databases."""
    init_db()
    run_migrations()
    yield


app = FastAPI(
    title="PFMS",
    description="Personal finance tracker with spreadsheet transaction import",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError):
    return JSONResponse(status_code=400, content={"success": False, "message": exc.message})


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=401, content={"success": False, "message": exc.message})


# Register routers
app.include_router(transaction_import.router, prefix="/api/transactions", tags=["Transaction Import"])


@app.get("/health")
def health_check():
    """Health check endpoint used by the frontend and load balancer."""
    return {"status": "ok", "version": VERSION}
