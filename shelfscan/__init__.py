"""Book-spine text detection backend package."""

from fastapi import FastAPI

from .main import app as _app
from .pipeline import ProcessingError, process_bookshelf_image

app: FastAPI = _app

__all__ = ["app", "ProcessingError", "process_bookshelf_image"]
