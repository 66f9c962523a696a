#!/usr/bin/env python3
"""
Start Slide Pipeline Service - streaming presentation generation and feedback revision
Standalone script to run the Slide Pipeline Service independently
"""

import sys
import logging
from pathlib import Path

# Add current directory to Python path
sys.path.append(str(Path(__file__).parent))

from shared.config import get_settings, debug_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Start the Slide Pipeline Service"""
    settings = get_settings()
    debug_settings()

    if not settings.openai_configured:
        # Every AI call has a fallback, so the service still produces decks
        logger.warning("⚠️ OPENAI_API_KEY is not set: outlines and slides will use fallback content")
    if not (settings.huggingface_configured or settings.gemini_configured):
        logger.warning("⚠️ No image provider key set: slides will use placeholder images")

    logger.info("Starting Slide Pipeline Service...")
    logger.info(f"Port: {settings.service_port}")
    logger.info(f"Host: {settings.service_host}")

    try:
        import uvicorn

        uvicorn.run(
            "slide_pipeline.api_server:app",
            host=settings.service_host,
            port=settings.service_port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    except Exception as e:
        logger.error(f"Failed to start Slide Pipeline Service: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
