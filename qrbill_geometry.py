"""
QR-bill Geometry — Module-to-Pixel Planner
============================================

Shared layout for all four backends. Every renderer places module (x, y)
at the pixel rectangle

    [left_padding + x*multiple, top_padding + y*multiple, multiple, multiple]

so raster, SVG, EPS and PDF output line up exactly. Integer arithmetic
throughout.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Tuple

from qrbill_types import BitMatrix, IntegrityError, SWISS_CROSS_EDGE_SIDE_PX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeometryPlan:
    """Result of plan(). Also carries the quiet-zone-inclusive QR size."""
    multiple: int
    left_padding: int
    top_padding: int
    output_width: int
    output_height: int
    qr_width: int
    qr_height: int

    def module_rect(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """(left, top, width, height) of module (x, y) in output pixels."""
        m = self.multiple
        return (self.left_padding + x * m, self.top_padding + y * m, m, m)


def plan(matrix_width: int, matrix_height: int,
         requested_width: int, requested_height: int,
         quiet_zone: int) -> GeometryPlan:
    """
    Compute the module scale factor and centering padding.

    Padding includes both the quiet zone and the extra white pixels needed
    to reach the requested size. A 25x25 matrix with quiet zone 4 is 33x33;
    asked for 200x160 the multiple is 4 (132x132), centered in 200x160.
    """
    if matrix_width <= 0 or matrix_height <= 0:
        raise IntegrityError(f"Empty matrix: {matrix_width}x{matrix_height}")
    if quiet_zone < 0:
        raise IntegrityError(f"Negative quiet zone: {quiet_zone}")

    qr_width = matrix_width + 2 * quiet_zone
    qr_height = matrix_height + 2 * quiet_zone
    output_width = max(qr_width, requested_width)
    output_height = max(qr_height, requested_height)

    multiple = min(output_width // qr_width, output_height // qr_height)
    left_padding = (output_width - matrix_width * multiple) // 2
    top_padding = (output_height - matrix_height * multiple) // 2

    logger.debug("plan %dx%d qz=%d -> multiple=%d padding=(%d, %d) output=%dx%d",
                 matrix_width, matrix_height, quiet_zone,
                 multiple, left_padding, top_padding, output_width, output_height)

    return GeometryPlan(
        multiple=multiple,
        left_padding=left_padding,
        top_padding=top_padding,
        output_width=output_width,
        output_height=output_height,
        qr_width=qr_width,
        qr_height=qr_height,
    )


def check_matrix(matrix: BitMatrix) -> BitMatrix:
    """Reject a missing or empty matrix. A QR encoder contract breach."""
    if matrix is None:
        raise IntegrityError("No QR matrix given")
    if not matrix.width or not matrix.height or not matrix.rows:
        raise IntegrityError("Empty QR matrix")
    return matrix


def plan_for(matrix: BitMatrix, width: int, height: int, quiet_zone: int) -> GeometryPlan:
    check_matrix(matrix)
    return plan(matrix.width, matrix.height, width, height, quiet_zone)


def dark_module_rects(matrix: BitMatrix,
                      geometry: GeometryPlan) -> Iterator[Tuple[int, int, int, int]]:
    """Yield (left, top, width, height) for every dark module, row by row."""
    for y, row in enumerate(matrix.rows):
        for x, dark in enumerate(row):
            if dark:
                yield geometry.module_rect(x, y)


def cross_position(geometry: GeometryPlan) -> Tuple[int, int]:
    """Top-left corner of the centered Swiss cross. (549, 549) on a 1265 canvas."""
    return ((geometry.output_width - SWISS_CROSS_EDGE_SIDE_PX) // 2,
            (geometry.output_height - SWISS_CROSS_EDGE_SIDE_PX) // 2)
