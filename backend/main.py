"""
Trip Ledger Backend API

A FastAPI backend for tracking family trip expenses, credit card points and
settle-ups between trip participants.
This module sets up the app and mounts routers - all endpoint logic is in routers/.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import models
from config import ALLOWED_ORIGINS, LOG_LEVEL, RECEIPT_DIR
from database import engine
from utils import errors

# Import routers
from routers import balances, cards, expenses, family, itinerary, participants, trips, uploads


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create database tables
models.Base.metadata.create_all(bind=engine)

# Create receipts directory if not exists
os.makedirs(RECEIPT_DIR, exist_ok=True)

# Initialize FastAPI app
app = FastAPI(
    title="Trip Ledger API",
    description="API for family trip expenses, credit cards and settle-ups",
    version="1.0.0"
)

# Mount static files for receipts
app.mount("/static/receipts", StaticFiles(directory=RECEIPT_DIR), name="receipts")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    # JSON API and stored images only; nothing here should ever run script
    response.headers["Content-Security-Policy"] = "default-src 'none'; img-src 'self'; frame-ancestors 'none'"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


# Every failure leaves as a {data: null, error} envelope
app.add_exception_handler(errors.AppError, errors.app_error_handler)
app.add_exception_handler(RequestValidationError, errors.request_validation_handler)
app.add_exception_handler(StarletteHTTPException, errors.http_exception_handler)
app.add_exception_handler(Exception, errors.server_error_handler)

# Include routers
app.include_router(family.router)
app.include_router(cards.router)
app.include_router(trips.router)
app.include_router(expenses.router)
app.include_router(participants.router)
app.include_router(itinerary.router)
app.include_router(balances.router)
app.include_router(uploads.router)
