"""
QR-bill PDF — Document Encoder & Renderer
===========================================

Two layers:

  - PDFDocument: minimal object-ID arena. Objects are allocated up front
    (so the page tree can reference forward), filled in, and serialized
    in a single pass with a cross-reference table.
  - render_pdf: builds the QR content stream and places it on a single
    page as a Form XObject.

Document layout (object IDs in allocation order):

    1 Catalog  -> 2 Pages -> 3 Page -> 4 Form XObject "qr"
                                    -> 5 page content stream
    6 Info (document metadata)
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from qrbill_types import (
    BitMatrix, IntegrityError, DEFAULT_QUIET_ZONE, QR_CODE_EDGE_SIDE_PX,
    SWISS_CROSS_RECTS, CREATOR, TITLE,
)
from qrbill_geometry import plan_for, dark_module_rects, cross_position

logger = logging.getLogger(__name__)

PDF_HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"

# Maps the 1265-unit content space onto the page. Does not correspond
# exactly to the 55mm physical edge; kept as found in the reference output.
CONTENT_SCALE = 0.12

XOBJECT_NAME = "qr"


# ═══════════════════════════════════════════════════════════════
# DOCUMENT ENCODER
# ═══════════════════════════════════════════════════════════════

def _dictionary(entries: Dict[str, str]) -> str:
    return "<< " + " ".join(f"/{key} {value}" for key, value in entries.items()) + " >>"


def pdf_ref(obj_id: int) -> str:
    return f"{obj_id} 0 R"


def pdf_string(text: str) -> str:
    """Literal string with (, ) and \\ escaped."""
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return f"({escaped})"


def pdf_number(value: float) -> str:
    return f"{value:.4f}".rstrip("0").rstrip(".")


class PDFDocument:
    """
    Object-ID arena for a small, fixed PDF object graph.

    Usage:
        doc = PDFDocument()
        catalog = doc.allocate()
        ...
        doc.set_object(catalog, {"Type": "/Catalog", "Pages": pdf_ref(pages)})
        data = doc.encode(root=catalog, info=info)
    """

    def __init__(self):
        self._objects: List[Optional[bytes]] = []

    def allocate(self) -> int:
        """Reserve the next object ID. Must be filled before encode()."""
        self._objects.append(None)
        return len(self._objects)

    def set_object(self, obj_id: int, entries: Dict[str, str]) -> int:
        self._store(obj_id, _dictionary(entries).encode("latin-1"))
        return obj_id

    def set_stream(self, obj_id: int, entries: Dict[str, str], data: bytes) -> int:
        entries = dict(entries)
        entries["Length"] = str(len(data))
        body = b"\n".join([_dictionary(entries).encode("latin-1"),
                           b"stream", data, b"endstream"])
        self._store(obj_id, body)
        return obj_id

    def add_object(self, entries: Dict[str, str]) -> int:
        return self.set_object(self.allocate(), entries)

    def add_stream(self, entries: Dict[str, str], data: bytes) -> int:
        return self.set_stream(self.allocate(), entries, data)

    def _store(self, obj_id: int, body: bytes):
        if not 1 <= obj_id <= len(self._objects):
            raise IntegrityError(f"Object {obj_id} was never allocated")
        if self._objects[obj_id - 1] is not None:
            raise IntegrityError(f"Object {obj_id} already set")
        self._objects[obj_id - 1] = body

    def encode(self, root: int, info: Optional[int] = None) -> bytes:
        """Serialize all objects, the xref table and the trailer."""
        missing = [i for i, body in enumerate(self._objects, start=1) if body is None]
        if missing:
            raise IntegrityError(f"Unresolved PDF objects: {missing}")

        out = bytearray(PDF_HEADER)
        offsets = []
        for obj_id, body in enumerate(self._objects, start=1):
            offsets.append(len(out))
            out.extend(f"{obj_id} 0 obj\n".encode("ascii"))
            out.extend(body)
            out.extend(b"\nendobj\n")

        xref_position = len(out)
        size = len(self._objects) + 1
        out.extend(f"xref\n0 {size}\n".encode("ascii"))
        out.extend(b"0000000000 65535 f \n")
        for offset in offsets:
            out.extend(f"{offset:010d} 00000 n \n".encode("ascii"))

        trailer = {"Size": str(size), "Root": pdf_ref(root)}
        if info is not None:
            trailer["Info"] = pdf_ref(info)
        out.extend(f"trailer\n{_dictionary(trailer)}\nstartxref\n{xref_position}\n%%EOF\n"
                   .encode("ascii"))
        return bytes(out)


# ═══════════════════════════════════════════════════════════════
# RENDERER
# ═══════════════════════════════════════════════════════════════

def qr_content_stream(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
    """
    Content stream of the Form XObject: modules as one composite path
    filled once, then the four-rectangle Swiss cross.
    """
    edge = QR_CODE_EDGE_SIDE_PX
    geometry = plan_for(matrix, edge, edge, quiet_zone)

    ops: List[str] = [
        "q",
        # Flip y so the origin is top-left, like the EPS and SVG output
        f"1 0 0 -1 0 {geometry.output_height} cm",
    ]
    for left, top, w, h in dark_module_rects(matrix, geometry):
        ops.append(f"{left} {top} {w} {h} re")
    # Filling rectangles one by one leaves seams in some viewers at some
    # zoom levels. A single fill of the whole path does not.
    ops.append("0 g")
    ops.append("f")

    x, y = cross_position(geometry)
    ops.append(f"1 0 0 1 {x} {y} cm")
    current = None
    for cx, cy, cw, ch, gray in SWISS_CROSS_RECTS:
        if gray != current:
            ops.append(f"{gray} g")
            current = gray
        ops.append(f"{cx} {cy} {cw} {ch} re")
        ops.append("f")

    ops.append("Q")
    return ("\n".join(ops) + "\n").encode("ascii")


def render_pdf(matrix: BitMatrix, quiet_zone: int = DEFAULT_QUIET_ZONE,
               creation_date: Optional[datetime] = None) -> bytes:
    """Single-page PDF with the QR code drawn through a Form XObject."""
    stream = qr_content_stream(matrix, quiet_zone)
    edge = QR_CODE_EDGE_SIDE_PX
    page_edge = pdf_number(edge * CONTENT_SCALE)
    scale = pdf_number(CONTENT_SCALE)
    created = (creation_date or datetime.now()).strftime("D:%Y%m%d%H%M%S")

    doc = PDFDocument()
    catalog = doc.allocate()
    pages = doc.allocate()
    page = doc.allocate()

    form = doc.add_stream({
        "Subtype": "/Form",
        "FormType": "1",
        "Type": "/XObject",
        "ColorSpace": "/DeviceGray",
        "BBox": f"[0 0 {edge} {edge}]",
        "Matrix": "[1 0 0 1 0 0]",
        "Resources": "<< /ProcSet [/PDF] >>",
    }, stream)
    content = doc.add_stream({}, f"q\n{scale} 0 0 {scale} 0 0 cm\n/{XOBJECT_NAME} Do\nQ\n"
                             .encode("ascii"))

    doc.set_object(page, {
        "Type": "/Page",
        "Parent": pdf_ref(pages),
        "MediaBox": f"[0 0 {page_edge} {page_edge}]",
        "Resources": f"<< /XObject << /{XOBJECT_NAME} {pdf_ref(form)} >> >>",
        "Contents": pdf_ref(content),
    })
    doc.set_object(pages, {"Type": "/Pages", "Kids": f"[{pdf_ref(page)}]", "Count": "1"})
    doc.set_object(catalog, {"Type": "/Catalog", "Pages": pdf_ref(pages)})

    info = doc.add_object({
        "Producer": pdf_string(CREATOR),
        "Title": pdf_string(TITLE),
        "CreationDate": pdf_string(created),
    })

    data = doc.encode(root=catalog, info=info)
    logger.debug("PDF: %d bytes, content stream %d bytes", len(data), len(stream))
    return data
