"""
QR-bill Assets — Swiss Cross Catalog
======================================

Process-wide, read-only table of the Swiss cross blobs that every
renderer overlays on the QR code:

  - swisscross.png : 166x166 px raster (7mm physical), 8-bit grayscale
  - swisscross.svg : 166x166 SVG fragment, inlined into SVG output

The EPS and PDF backends do not read either blob. They draw the cross as
four literal rectangles (qrbill_types.SWISS_CROSS_RECTS), kept separate so their
output stays byte-compatible with the reference examples.

The catalog is built and verified once, at import. A corrupt blob raises
AssetError during import, which is fatal for the process.
"""

import io
import base64
import logging
from types import MappingProxyType
from typing import Mapping

from PIL import Image

from qrbill_types import AssetError, SWISS_CROSS_EDGE_SIDE_PX

logger = logging.getLogger(__name__)

SWISS_CROSS_PNG = "swisscross.png"
SWISS_CROSS_SVG = "swisscross.svg"

# Root element of the SVG fragment. Renderers rewrite x/y of exactly this.
SWISS_CROSS_SVG_ROOT = b'<svg x="0" y="0" width="166" height="166"'
SWISS_CROSS_SVG_XML_DECL = b'<?xml version="1.0" encoding="utf-8"?>'

# ═══════════════════════════════════════════════════════════════
# EMBEDDED BLOBS
# ═══════════════════════════════════════════════════════════════

_SWISS_CROSS_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAKYAAACmCAAAAAB146urAAAAnUlEQVR42u3awQ0AIAgEQfpvWksg"
    "PoiIsxXMlwuxnigwMTExMTExD5jRKkxMTExMTExMTExMTMx/mMnxiomJiYmJiYmJiYmJiYmJiYmJ"
    "iYl5jVn8vIOJiYmJiYmJiYmJiYmJiYmJOYBpkcPExMTExMTExMTExMTExMTExMScyqwJExMTExMT"
    "ExMTExMTExMTE7Mjs2+YmJiYmJiYSRui+3wLS54npgAAAABJRU5ErkJggg=="
)

_SWISS_CROSS_SVG = (
    b'<?xml version="1.0" encoding="utf-8"?>\n'
    b'<svg x="0" y="0" width="166" height="166" viewBox="0 0 166 166" version="1.1"'
    b' baseProfile="full" xmlns="http://www.w3.org/2000/svg">\n'
    b'  <rect x="0" y="0" width="166" height="166" fill="white"></rect>\n'
    b'  <rect x="12" y="12" width="142" height="142" fill="black"></rect>\n'
    b'  <rect x="36" y="66" width="94" height="28" fill="white"></rect>\n'
    b'  <rect x="68" y="34" width="30" height="92" fill="white"></rect>\n'
    b'</svg>\n'
)


# ═══════════════════════════════════════════════════════════════
# CATALOG
# ═══════════════════════════════════════════════════════════════

class AssetCatalog:
    """
    Immutable name -> bytes lookup.

    Usage:
        png = ASSETS.get(SWISS_CROSS_PNG)
        cross = ASSETS.image(SWISS_CROSS_PNG)
    """

    def __init__(self, blobs: Mapping[str, bytes]):
        self._blobs = MappingProxyType(dict(blobs))
        self._verify()
        # Decoded once; callers receive copies.
        self._cross_image = Image.open(io.BytesIO(self._blobs[SWISS_CROSS_PNG]))
        self._cross_image.load()

    @classmethod
    def load(cls) -> 'AssetCatalog':
        try:
            png = base64.b64decode(_SWISS_CROSS_PNG_B64, validate=True)
        except ValueError as exc:
            raise AssetError(f"{SWISS_CROSS_PNG}: invalid base64") from exc
        return cls({SWISS_CROSS_PNG: png, SWISS_CROSS_SVG: _SWISS_CROSS_SVG})

    def get(self, name: str) -> bytes:
        try:
            return self._blobs[name]
        except KeyError:
            raise AssetError(f"Unknown asset: {name!r}") from None

    def names(self):
        return sorted(self._blobs)

    def cross_image(self) -> Image.Image:
        """Decoded raster cross, as a fresh RGBA copy."""
        return self._cross_image.convert("RGBA")

    def _verify(self):
        for name in (SWISS_CROSS_PNG, SWISS_CROSS_SVG):
            if not self._blobs.get(name):
                raise AssetError(f"Missing asset: {name}")

        png = self._blobs[SWISS_CROSS_PNG]
        try:
            with Image.open(io.BytesIO(png)) as img:
                img.verify()
                size = img.size
        except Exception as exc:
            raise AssetError(f"{SWISS_CROSS_PNG}: not a valid PNG ({exc})") from exc
        edge = SWISS_CROSS_EDGE_SIDE_PX
        if size != (edge, edge):
            raise AssetError(f"{SWISS_CROSS_PNG}: expected {edge}x{edge}, got {size[0]}x{size[1]}")

        svg = self._blobs[SWISS_CROSS_SVG]
        if SWISS_CROSS_SVG_ROOT not in svg:
            raise AssetError(f"{SWISS_CROSS_SVG}: root element {SWISS_CROSS_SVG_ROOT!r} not found")

        logger.debug("Asset catalog verified: %s", ", ".join(sorted(self._blobs)))


ASSETS = AssetCatalog.load()
