"""Merge text regions into book-spine candidates."""

from __future__ import annotations

import logging
from typing import List, Sequence

from .grouping import (
    box_center,
    box_height,
    copy_box,
    determine_orientation,
    expand_box,
    running_confidence,
)
from .titles import clean_book_title
from .types import BookSpine, OCRWord, TextRegion

logger = logging.getLogger(__name__)

COLUMN_TOLERANCE_PX = 50.0
ROW_TOLERANCE_PX = 30.0
SPINE_DISTANCE_FACTOR = 3.0
MIN_TITLE_LENGTH = 3
MIN_CONFIDENCE = 30.0


def _spine_words(spine: BookSpine) -> List[OCRWord]:
    return [word for region in spine["text_regions"] for word in region["words"]]


def _spine_center_y(spine: BookSpine) -> float:
    return box_center(spine["bbox"])[1]


def _accepts(spine: BookSpine) -> bool:
    return len(spine["title"]) >= MIN_TITLE_LENGTH and spine["confidence"] > MIN_CONFIDENCE


def rank_spines(spines: Sequence[BookSpine]) -> List[BookSpine]:
    """Drop short or low-confidence spines and order the rest top to bottom."""
    kept: List[BookSpine] = []
    for spine in spines:
        if _accepts(spine):
            kept.append(spine)
        else:
            logger.debug(
                "Rejected spine candidate %r (confidence %.1f)",
                spine["title"],
                spine["confidence"],
            )
    return sorted(kept, key=_spine_center_y)


def group_regions_into_spines(
    regions: Sequence[TextRegion],
    *,
    require_row_alignment: bool = False,
) -> List[BookSpine]:
    """Merge aligned regions into spine candidates without filtering them.

    A later region joins the seed region's spine when their centers are less
    than 50px apart horizontally and their vertical center distance is under
    three times their average height. Titles are built top to bottom relative
    to the seed. ``require_row_alignment`` additionally requires the centers
    to be within 30px vertically.
    """
    spines: List[BookSpine] = []
    used = [False] * len(regions)
    for i, seed in enumerate(regions):
        if used[i]:
            continue
        used[i] = True
        spine: BookSpine = {
            "title": seed["text"],
            "confidence": seed["confidence"],
            "bbox": copy_box(seed["bbox"]),
            "orientation": seed["orientation"],
            "text_regions": [seed],
        }
        seed_x, seed_y = box_center(seed["bbox"])
        for j in range(i + 1, len(regions)):
            if used[j]:
                continue
            other = regions[j]
            other_x, other_y = box_center(other["bbox"])
            vertically_aligned = abs(seed_x - other_x) < COLUMN_TOLERANCE_PX
            horizontally_aligned = abs(seed_y - other_y) < ROW_TOLERANCE_PX
            vertical_distance = abs(other_y - seed_y)
            avg_height = (box_height(seed["bbox"]) + box_height(other["bbox"])) / 2.0
            if not (vertically_aligned and vertical_distance < avg_height * SPINE_DISTANCE_FACTOR):
                continue
            if require_row_alignment and not horizontally_aligned:
                continue

            spine["text_regions"].append(other)
            if other["bbox"]["y0"] < seed["bbox"]["y0"]:
                spine["title"] = other["text"] + " " + spine["title"]
            else:
                spine["title"] += " " + other["text"]
            expand_box(spine["bbox"], other["bbox"])
            spine["confidence"] = running_confidence(spine["confidence"], other["confidence"])
            used[j] = True

        if len(spine["text_regions"]) > 1:
            spine["orientation"] = determine_orientation(_spine_words(spine))
        spine["title"] = clean_book_title(spine["title"])
        spines.append(spine)
    return spines


def detect_book_spines(
    regions: Sequence[TextRegion],
    *,
    require_row_alignment: bool = False,
) -> List[BookSpine]:
    """Group regions into spines, then filter and sort them top to bottom."""
    candidates = group_regions_into_spines(regions, require_row_alignment=require_row_alignment)
    spines = rank_spines(candidates)
    logger.debug(
        "Detected %d spines from %d regions (%d candidates)",
        len(spines),
        len(regions),
        len(candidates),
    )
    return spines


__all__ = [
    "COLUMN_TOLERANCE_PX",
    "ROW_TOLERANCE_PX",
    "group_regions_into_spines",
    "rank_spines",
    "detect_book_spines",
]
