"""FastAPI server exposing bookshelf spine detection."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, Optional

import requests
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .pipeline import ProcessingError, process_bookshelf_image
from .types import ScanResult

logger = logging.getLogger(__name__)

app: FastAPI = FastAPI(title="Shelfscan API", version="0.1.0")

MAX_CANVAS_SIDE = 4096


class Size(BaseModel):
    w: int = Field(..., ge=1, le=MAX_CANVAS_SIDE)
    h: int = Field(..., ge=1, le=MAX_CANVAS_SIDE)


class ScanRequest(BaseModel):
    image_url: Optional[str] = None
    image_b64: Optional[str] = None
    canvas_size: Optional[Size] = Field(default=None, description="Size of the rendered visualization")
    language_hint: Optional[str] = Field(default="en", description="Language hint for OCR")
    require_row_alignment: bool = False

    def load_bytes(self) -> bytes:
        if self.image_b64:
            try:
                _, data = self.image_b64.split(",", 1)
            except ValueError:
                data = self.image_b64
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError):
                raise HTTPException(status_code=400, detail="image_b64 is not valid base64")
        if self.image_url:
            logger.info("Fetching image from %s", self.image_url)
            try:
                response = requests.get(self.image_url, timeout=20)
            except requests.RequestException as exc:
                logger.warning("Image fetch failed: %s", exc)
                raise HTTPException(status_code=502, detail="Failed to fetch image URL")
            if not response.ok:
                raise HTTPException(status_code=502, detail="Failed to fetch image URL")
            return response.content
        raise HTTPException(status_code=400, detail="Provide image_url or image_b64")


@app.post("/scan")
def scan(req: ScanRequest) -> Dict[str, Any]:
    image_bytes = req.load_bytes()
    size = (req.canvas_size.w, req.canvas_size.h) if req.canvas_size else None
    try:
        result: ScanResult = process_bookshelf_image(
            image_bytes,
            language_hint=req.language_hint,
            visualization_size=size,
            require_row_alignment=req.require_row_alignment,
        )
    except ProcessingError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return dict(result)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
