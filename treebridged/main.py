"""Main FastAPI application for the treebridge daemon.

This module creates and configures the FastAPI application that exposes
the document-tree provider to other processes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from treebridge_library.config import load_config
from treebridge_library.storage import get_working_dir_file
from treebridge_library.storage import read_working_dir

from .routers import documents_router
from .routers import status_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Args:
        app: FastAPI application instance
    """
    config = load_config()
    logger.info(f"Starting treebridge daemon on {config.host}:{config.port}")

    working_dir = read_working_dir()
    if working_dir is None:
        logger.warning(f"No working directory chosen yet ({get_working_dir_file()}); no roots will be listed")
    else:
        logger.info(f"Working directory: {working_dir}")

    yield

    logger.info("Shutting down treebridge daemon")


app = FastAPI(
    title="treebridge",
    description="Document-tree provider over the chosen working directory",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(status_router)
app.include_router(documents_router)
