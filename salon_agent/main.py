"""
Main application entry point for the salon booking agent.
"""

import uvicorn
from dotenv import load_dotenv

from .api.app import create_app

load_dotenv()

# Create the FastAPI application
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "salon_agent.main:app",
        host="0.0.0.0",
        port=8001,
    )
