"""Main entry point for the habit quest API"""
import logging
import uvicorn
from src.config import API_HOST, API_PORT, LOG_LEVEL
from src.api.server import create_api_application

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    app = create_api_application()

    logger.info(f"Serving API on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
