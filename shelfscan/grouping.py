"""Group recognized words into text regions."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from scipy.spatial import KDTree

from .types import BoundingBox, OCRWord, Orientation, Point, TextRegion

logger = logging.getLogger(__name__)

ORIENTATION_RATIO = 1.5
REGION_DISTANCE_FACTOR = 2.0
# KDTree radii are inclusive and float-rounded; the exact test happens afterwards.
_KDTREE_SLACK = 1e-6


def box_center(box: BoundingBox) -> Point:
    return ((box["x0"] + box["x1"]) / 2.0, (box["y0"] + box["y1"]) / 2.0)


def box_width(box: BoundingBox) -> float:
    return box["x1"] - box["x0"]


def box_height(box: BoundingBox) -> float:
    return box["y1"] - box["y0"]


def copy_box(box: BoundingBox) -> BoundingBox:
    return {"x0": box["x0"], "y0": box["y0"], "x1": box["x1"], "y1": box["y1"]}


def expand_box(target: BoundingBox, other: BoundingBox) -> None:
    """Grow ``target`` in place so it also covers ``other``."""
    target["x0"] = min(target["x0"], other["x0"])
    target["y0"] = min(target["y0"], other["y0"])
    target["x1"] = max(target["x1"], other["x1"])
    target["y1"] = max(target["y1"], other["y1"])


def running_confidence(current: float, new: float) -> float:
    """Pairwise average applied after every merge.

    Not a true mean: each merge halves the weight of everything merged before.
    """
    return (current + new) / 2.0


def determine_orientation(words: Iterable[OCRWord]) -> Orientation:
    """Classify words as horizontal or vertical text.

    Wide boxes vote horizontal and tall boxes vote vertical, each weighted by
    confidence. Near-square boxes do not vote. Ties go to vertical; an empty
    input is horizontal.
    """
    horizontal_score = 0.0
    vertical_score = 0.0
    seen = False
    for word in words:
        seen = True
        width = box_width(word["bbox"])
        height = box_height(word["bbox"])
        if width > height * ORIENTATION_RATIO:
            horizontal_score += word["confidence"]
        elif height > width * ORIENTATION_RATIO:
            vertical_score += word["confidence"]
    if not seen:
        return "horizontal"
    return "horizontal" if horizontal_score > vertical_score else "vertical"


def _candidate_indices(
    tree: KDTree | None,
    centers: List[Point],
    heights: List[float],
    max_height: float,
    seed: int,
) -> List[int]:
    if tree is None:
        return list(range(seed + 1, len(centers)))
    # distance < h_seed + h_other <= h_seed + max_height
    radius = heights[seed] + max_height + _KDTREE_SLACK
    neighbors = tree.query_ball_point(centers[seed], r=radius)
    return sorted(n for n in neighbors if n > seed)


def group_words_into_regions(words: Sequence[OCRWord]) -> List[TextRegion]:
    """Cluster words into regions by center distance to a seed word.

    Words are visited in input order. Each unused word seeds a region and
    absorbs every later unused word whose center lies closer than twice the
    pair's average height. Distances are always measured from the seed's own
    box, never from the growing region box.
    """
    if not words:
        return []

    centers: List[Point] = [box_center(word["bbox"]) for word in words]
    heights: List[float] = [box_height(word["bbox"]) for word in words]
    max_height = max(heights)
    tree = KDTree(centers) if len(centers) >= 2 else None

    used = [False] * len(words)
    regions: List[TextRegion] = []
    for i, seed in enumerate(words):
        if used[i]:
            continue
        used[i] = True
        region: TextRegion = {
            "text": seed["text"],
            "confidence": seed["confidence"],
            "bbox": copy_box(seed["bbox"]),
            "orientation": determine_orientation([seed]),
            "words": [seed],
        }
        cx, cy = centers[i]
        for j in _candidate_indices(tree, centers, heights, max_height, i):
            if used[j]:
                continue
            other = words[j]
            distance = math.hypot(centers[j][0] - cx, centers[j][1] - cy)
            avg_height = (heights[i] + heights[j]) / 2.0
            if distance < avg_height * REGION_DISTANCE_FACTOR:
                region["words"].append(other)
                region["text"] += " " + other["text"]
                expand_box(region["bbox"], other["bbox"])
                region["confidence"] = running_confidence(region["confidence"], other["confidence"])
                used[j] = True

        region["orientation"] = determine_orientation(region["words"])
        regions.append(region)

    logger.debug("Grouped %d words into %d regions", len(words), len(regions))
    return regions


__all__ = [
    "box_center",
    "box_width",
    "box_height",
    "copy_box",
    "expand_box",
    "running_confidence",
    "determine_orientation",
    "group_words_into_regions",
]
