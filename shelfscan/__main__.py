"""Serve the shelfscan API with uvicorn."""

from __future__ import annotations

import os

import uvicorn

from .logging_config import configure_logging


def main() -> None:
    configure_logging()
    uvicorn.run(
        "shelfscan.main:app",
        host=os.getenv("SHELFSCAN_HOST", "127.0.0.1"),
        port=int(os.getenv("SHELFSCAN_PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
