#!/usr/bin/env python3
"""
Recruitflow FastAPI Startup Script
Main entry point for the Recruitflow API application
"""
import logging

import uvicorn
from recruitflow.core.config import get_settings
from recruitflow.core.logging_config import configure_logging

logger = logging.getLogger("recruitflow.startup")


def start_server():
    """Start the FastAPI server"""
    settings = get_settings()
    configure_logging(settings)

    logger.info("Starting Recruitflow API server (store backend: %s)", settings.STORE_BACKEND)
    logger.info("API Documentation: http://localhost:8000/docs")
    logger.info("Health Check: http://localhost:8000/health")

    uvicorn.run(
        "recruitflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    start_server()
