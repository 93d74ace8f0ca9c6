"""
QR-bill Renderers — Raster, SVG, EPS
======================================

Three of the four output backends (PDF lives in qrbill_pdf). Each one:

  1. plans the layout with qrbill_geometry.plan (shared, integer-exact)
  2. fills the canvas white
  3. paints one black square per dark module
  4. overlays the 166x166 Swiss cross centered at (549, 549)

Raster output comes from Pillow, SVG from svgwrite, EPS is written as
plain PostScript text.
"""

import io
import logging
from datetime import date
from typing import List, Optional

import svgwrite
from PIL import Image, ImageDraw

from qrbill_types import (
    BitMatrix, DEFAULT_QUIET_ZONE, QR_CODE_EDGE_SIDE_PX, SWISS_CROSS_EDGE_SIDE_PX,
    SWISS_CROSS_RECTS, CREATOR, TITLE,
)
from qrbill_geometry import plan_for, dark_module_rects, cross_position
from qrbill_assets import (
    ASSETS, SWISS_CROSS_SVG, SWISS_CROSS_SVG_ROOT, SWISS_CROSS_SVG_XML_DECL,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# RASTER (Pillow)
# ═══════════════════════════════════════════════════════════════

def render_raster(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE,
                  size: int = QR_CODE_EDGE_SIDE_PX) -> Image.Image:
    """
    Scale the module matrix onto a `size` x `size` RGBA image and paste the
    raster Swiss cross over its center.

    Colors come from the cross asset itself: its outer margin is the
    background, its frame the module color. The paste is an opaque
    overwrite, no blending.
    """
    geometry = plan_for(matrix, size, size, quiet_zone)
    cross = ASSETS.cross_image()
    background = cross.getpixel((0, 0))
    foreground = cross.getpixel((12, 12))

    img = Image.new("RGBA", (geometry.output_width, geometry.output_height), background)
    draw = ImageDraw.Draw(img)
    for left, top, width, height in dark_module_rects(matrix, geometry):
        # rectangle() bounds are inclusive
        draw.rectangle([left, top, left + width - 1, top + height - 1], fill=foreground)

    img.paste(cross, cross_position(geometry))
    return img


def render_png(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
    buf = io.BytesIO()
    render_raster(matrix, quiet_zone=quiet_zone).save(buf, format="PNG")
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════
# SVG (svgwrite)
# ═══════════════════════════════════════════════════════════════

def _positioned_cross(x: int, y: int) -> bytes:
    """The SVG cross fragment, XML declaration removed, root moved to (x, y)."""
    cross = ASSETS.get(SWISS_CROSS_SVG)
    cross = cross.replace(SWISS_CROSS_SVG_XML_DECL, b"")
    return cross.replace(
        SWISS_CROSS_SVG_ROOT,
        f'<svg x="{x}" y="{y}" width="{SWISS_CROSS_EDGE_SIDE_PX}" '
        f'height="{SWISS_CROSS_EDGE_SIDE_PX}"'.encode("ascii"),
    )


def render_svg(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
    """SVG 1.1 document, output_width x output_height, cross nested as an <svg> element."""
    edge = QR_CODE_EDGE_SIDE_PX
    geometry = plan_for(matrix, edge, edge, quiet_zone)
    width, height = geometry.output_width, geometry.output_height

    dwg = svgwrite.Drawing(size=(width, height), profile="full", debug=False)
    dwg.add(dwg.rect(insert=(0, 0), size=(width, height), fill="white", stroke="white"))

    modules = dwg.g(shape_rendering="crispEdges")
    for left, top, w, h in dark_module_rects(matrix, geometry):
        modules.add(dwg.rect(insert=(left, top), size=(w, h), fill="black", stroke="none"))
    dwg.add(modules)

    document = dwg.tostring().encode("utf-8")
    head, closing, tail = document.rpartition(b"</svg>")
    return head + _positioned_cross(*cross_position(geometry)) + closing + tail


# ═══════════════════════════════════════════════════════════════
# EPS (PostScript text)
# ═══════════════════════════════════════════════════════════════

def render_eps(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE,
               creation_date: Optional[date] = None) -> bytes:
    """
    EPSF-3.0 document with a top-down coordinate system.

    Lines stay under 255 characters, LF-terminated. The cross is four
    literal rectangles, not derived from the raster or SVG asset.
    """
    edge = QR_CODE_EDGE_SIDE_PX
    geometry = plan_for(matrix, edge, edge, quiet_zone)
    width, height = geometry.output_width, geometry.output_height
    created = (creation_date or date.today()).isoformat()

    eps: List[str] = [
        "%!PS-Adobe-3.0 EPSF-3.0",
        f"%%Creator: {CREATOR}",
        f"%%Title: {TITLE}",
        f"%%CreationDate: {created}",
        f"%%BoundingBox: 0 0 {width} {height}",
        "%%EndComments",
        "/F { rectfill } def",
        # Flip y so the origin is top-left, like SVG and the raster image
        f"0 {height} translate",
        "1 -1 scale",
        "1 1 1 setrgbcolor",
        f"0 0 {width} {height} F",
        "0 0 0 setrgbcolor",
    ]
    for left, top, w, h in dark_module_rects(matrix, geometry):
        eps.append(f"{left} {top} {w} {h} F")

    x, y = cross_position(geometry)
    eps.append(f"{x} {y} translate")
    current = None
    for cx, cy, cw, ch, gray in SWISS_CROSS_RECTS:
        if gray != current:
            eps.append(f"{gray} {gray} {gray} setrgbcolor")
            current = gray
        eps.append(f"{cx} {cy} {cw} {ch} F")

    logger.debug("EPS: %d lines", len(eps))
    return ("\n".join(eps) + "\n%%EOF").encode("ascii")
