"""
bittap.api.__main__ — Entry point for ``python -m bittap.api``
==============================================================

Serves the FastAPI app with uvicorn on the ``api_port`` from config.yaml.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from bittap.config import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("bittap")


def main() -> None:
    """Load config and run the API server (blocking)."""
    load_dotenv()
    cfg = load_config()
    logger.info("Starting BitTap API on port %d…", cfg.api_port)
    uvicorn.run("bittap.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
