# code_relay/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import LOG_LEVEL, cors_origins
from .api.endpoints import execution

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(title="code-relay Backend", version=__version__)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(execution.router)

@app.get("/")
async def root():
    return {"message": "code-relay Backend API", "version": __version__}

@app.get("/health")
async def health():
    return {"status": "healthy", "service": "code-relay"}
