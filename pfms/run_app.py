"""
Entry point for the PFMS backend.
Launches uvicorn with the FastAPI app object directly (not as a string).

    python -m pfms.run_app
"""

import os
import logging

import uvicorn
from pfms.main import app

logging.basicConfig(
    level=os.environ.get("PFMS_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)


def main():
    port = int(os.environ.get("PFMS_PORT", 8000))
    uvicorn.run(app, host=os.environ.get("PFMS_HOST", "127.0.0.1"), port=port)


if __name__ == "__main__":
    main()
