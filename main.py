"""
Entry point for the User Directory backend
"""

import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from user_directory.config.settings import LOG_LEVEL, PORT
from user_directory.app import create_app

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = create_app()

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting User Directory backend on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
