"""
Lingua Review API

FastAPI application wiring: logging, middleware and routers.

Run with:
    uvicorn lingua.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lingua import __version__
from lingua.config import settings
from lingua.middleware import setup_error_handling
from lingua.routers import health, study

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title=settings.APP_NAME, version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handling(app, debug=settings.DEBUG)

app.include_router(health.router)
app.include_router(study.router)


@app.get("/")
async def root():
    return {"message": settings.APP_NAME}
