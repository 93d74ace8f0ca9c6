"""
QR-bill Encoder — Validation, Canonical Payload, QR Matrix
============================================================

Turns a caller-supplied PaymentRecord into a Bill:

  PaymentRecord --validate--> PaymentRecord --encode--> Bill(payload, matrix)

  - validate(): total function, never raises. Truncates over-long fields,
    strips disallowed characters, normalizes the amount, writes the fixed
    header/trailer values. Idempotent.
  - encode(): joins the 31 payload fields in canonical order and asks the
    QR matrix encoder for the module matrix (error correction level M).
  - Bill: immutable value. render_raster / render_png / render_svg /
    render_eps / render_pdf.

The QR backend is pluggable: pass any QrMatrixEncoder to encode().
"""

import re
import sys
import logging
from dataclasses import asdict, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Dict, Optional

import qrcode
from qrcode.exceptions import DataOverflowError

from qrbill_types import (
    QR_TYPE, VERSION, CODING_TYPE, TRAILER,
    PAYLOAD_FIELD_COUNT, MAX_PAYLOAD_CHARS,
    MAX_NAME, MAX_ADDRESS_LINE1, MAX_ADDRESS_LINE2, MAX_TOWN,
    MAX_REFERENCE_TYPE, MAX_REFERENCE, MAX_UNSTRUCTURED_MESSAGE,
    DEFAULT_QUIET_ZONE, QR_CODE_EDGE_SIDE_PX,
    Header, Address, CreditorInfo, AmountInfo, RemittanceInfo, PaymentRecord,
    BitMatrix, EncodingError, IntegrityError, address_type_code,
)
from qrbill_render import render_raster, render_png, render_svg, render_eps
from qrbill_pdf import render_pdf

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════
# CHARACTER CLASSES (4.3.2 Permitted characters)
# ═══════════════════════════════════════════════════════════════

_NON_ALPHANUMERIC_RE = re.compile(r"[^A-Za-z0-9]")

# Pattern published by SIX for the unstructured message.
_USTRD_RE = re.compile(
    r"[a-zA-Z0-9.,;:'+\-/()?*\[\]{}\\`´~ ]"
    r'|[!"#%&<>÷=@_$£]'
    r"|[àáâäçèéêëìíîïñòóôöùúûüýßÀÁÂÄÇÈÉÊËÌÍÎÏÒÓÔÖÙÚÛÜÑ]"
)

# Accepts what a float parser would: optional sign, digits with optional
# fraction (or a bare fraction), optional exponent.
_AMOUNT_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

_CENTS = Decimal("0.01")
_INVALID_AMOUNT = "0.00"
# Anything larger would overflow a float parser to infinity
_MAX_AMOUNT = Decimal(sys.float_info.max)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


# ═══════════════════════════════════════════════════════════════
# VALIDATOR
# ═══════════════════════════════════════════════════════════════

def strip_non_alphanumeric(value: str) -> str:
    return _NON_ALPHANUMERIC_RE.sub("", value or "")


def filter_unstructured(message: str) -> str:
    """Keep only permitted characters (dropping the rest), then cap at 140."""
    kept = "".join(_USTRD_RE.findall(message or ""))
    return kept[:MAX_UNSTRUCTURED_MESSAGE]


def normalize_amount(amount: str) -> str:
    """
    Normalize to exactly two fraction digits, rounding half up.

        ""       -> ""
        "50"     -> "50.00"
        ".3"     -> "0.30"
        "50.000" -> "50.00"
        "50.-"   -> "0.00"   (unparseable)
        "1e400"  -> "0.00"   (outside the float range)
    """
    if not amount:
        return ""
    if not _AMOUNT_RE.match(amount):
        return _INVALID_AMOUNT
    try:
        value = Decimal(amount)
    except InvalidOperation:
        return _INVALID_AMOUNT
    if value.copy_abs() > _MAX_AMOUNT:
        return _INVALID_AMOUNT
    with localcontext() as ctx:
        # Integer digits plus two fraction digits must fit the context
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        value = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"{value:f}"


def validate_address(address: Address) -> Address:
    """Truncate name/lines/town to their limits. Postal code and country pass through."""
    return replace(
        address,
        name=(address.name or "")[:MAX_NAME],
        address_line1=(address.address_line1 or "")[:MAX_ADDRESS_LINE1],
        address_line2=(address.address_line2 or "")[:MAX_ADDRESS_LINE2],
        town=(address.town or "")[:MAX_TOWN],
    )


def validate(record: PaymentRecord) -> PaymentRecord:
    """
    Return a normalized, independent copy of `record`. Never raises.

    The input is not modified. validate(validate(x)) == validate(x).
    """
    creditor_info = record.creditor_info
    amount_info = record.amount_info
    remittance = record.remittance_info

    return PaymentRecord(
        header=Header(qr_type=QR_TYPE, version=VERSION, coding_type=CODING_TYPE),
        creditor_info=CreditorInfo(
            iban=strip_non_alphanumeric(creditor_info.iban),
            creditor=validate_address(creditor_info.creditor),
        ),
        # Reserved for future use: always blank
        ultimate_creditor=Address(),
        amount_info=AmountInfo(
            amount=normalize_amount(amount_info.amount),
            currency=amount_info.currency,
        ),
        ultimate_debtor=validate_address(record.ultimate_debtor),
        remittance_info=RemittanceInfo(
            reference_type=strip_non_alphanumeric(remittance.reference_type)[:MAX_REFERENCE_TYPE],
            reference=strip_non_alphanumeric(remittance.reference)[:MAX_REFERENCE],
            unstructured_message=filter_unstructured(remittance.unstructured_message),
            trailer=TRAILER,
        ),
    )


def describe(record: PaymentRecord) -> Dict[str, Any]:
    """Validated record as nested plain dicts, for debug output."""
    data = asdict(validate(record))
    for key in ('ultimate_creditor', 'ultimate_debtor'):
        data[key]['address_type'] = address_type_code(data[key]['address_type'])
    data['creditor_info']['creditor']['address_type'] = address_type_code(
        data['creditor_info']['creditor']['address_type'])
    return data


# ═══════════════════════════════════════════════════════════════
# QR MATRIX ENCODER
# ═══════════════════════════════════════════════════════════════

class QrMatrixEncoder:
    """
    Interface for QR backends: text -> BitMatrix.

    Implementations raise EncodingError when the text cannot be encoded
    (unsupported characters, capacity exceeded).
    """

    def encode(self, text: str) -> BitMatrix:
        raise NotImplementedError


class QRCodeMatrixEncoder(QrMatrixEncoder):
    """
    QrMatrixEncoder backed by the `qrcode` library.

    Usage:
        matrix = QRCodeMatrixEncoder().encode("SPC\\n0200\\n1\\n...")
    """

    def __init__(self, error_correction: int = qrcode.constants.ERROR_CORRECT_M):
        self.error_correction = error_correction

    def encode(self, text: str) -> BitMatrix:
        qr = qrcode.QRCode(
            version=None,
            error_correction=self.error_correction,
            box_size=1,
            border=0,  # the quiet zone is added by the geometry planner
        )
        try:
            # Byte mode, UTF-8
            qr.add_data(text.encode('utf-8'), optimize=0)
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as exc:
            raise EncodingError(f"QR encoding failed: {exc}") from exc
        matrix = BitMatrix.from_rows(qr.get_matrix())
        logger.debug("QR version %d, %dx%d modules", qr.version, matrix.width, matrix.height)
        return matrix


_DEFAULT_MATRIX_ENCODER = QRCodeMatrixEncoder()


# ═══════════════════════════════════════════════════════════════
# CANONICAL ENCODER
# ═══════════════════════════════════════════════════════════════

def _line(value: Optional[str]) -> str:
    return _LINE_BREAK_RE.sub(" ", value or "")


def canonical_payload(validated: PaymentRecord) -> str:
    """Join the 31 fields in canonical order, one per line, no trailing newline."""
    f = validated
    fields = [
        f.header.qr_type,
        f.header.version,
        f.header.coding_type,

        f.creditor_info.iban,
        *f.creditor_info.creditor.fields(),

        *f.ultimate_creditor.fields(),

        f.amount_info.amount,
        f.amount_info.currency,

        *f.ultimate_debtor.fields(),

        f.remittance_info.reference_type,
        f.remittance_info.reference,
        f.remittance_info.unstructured_message,
        f.remittance_info.trailer,
    ]
    assert len(fields) == PAYLOAD_FIELD_COUNT, \
        f"Payload field count mismatch: expected {PAYLOAD_FIELD_COUNT}, got {len(fields)}"
    return "\n".join(_line(v) for v in fields)


def encode(record: PaymentRecord,
           matrix_encoder: Optional[QrMatrixEncoder] = None) -> 'Bill':
    """
    Validate `record`, build the canonical payload and its QR matrix.

    Raises EncodingError if the QR matrix encoder rejects the payload.
    """
    payload = canonical_payload(validate(record))
    if len(payload) > MAX_PAYLOAD_CHARS:
        logger.warning("Payload is %d characters, above the %d character cap",
                       len(payload), MAX_PAYLOAD_CHARS)
    matrix = (matrix_encoder or _DEFAULT_MATRIX_ENCODER).encode(payload)
    return Bill(payload, matrix)


# ═══════════════════════════════════════════════════════════════
# BILL
# ═══════════════════════════════════════════════════════════════

class Bill:
    """
    Immutable canonical payload plus its QR module matrix.

    Only encode() should construct a Bill.
    """

    __slots__ = ('_payload', '_matrix')

    def __init__(self, payload: str, matrix: BitMatrix):
        if matrix is None or not matrix.width or not matrix.height:
            raise IntegrityError("Bill requires a non-empty QR matrix")
        object.__setattr__(self, '_payload', payload)
        object.__setattr__(self, '_matrix', matrix)

    def __setattr__(self, name, value):
        raise AttributeError("Bill is immutable")

    def __reduce__(self):
        # copy and pickle rebuild through __init__, not slot assignment
        return (Bill, (self._payload, self._matrix))

    def __repr__(self):
        return f"Bill({self._matrix.width}x{self._matrix.height}, {len(self._payload)} chars)"

    def __str__(self):
        return self._payload

    def __eq__(self, other):
        if not isinstance(other, Bill):
            return NotImplemented
        return self._payload == other._payload and self._matrix == other._matrix

    def __hash__(self):
        return hash((self._payload, self._matrix))

    @property
    def payload(self) -> str:
        return self._payload

    @property
    def matrix(self) -> BitMatrix:
        return self._matrix

    def encode_to_string(self) -> str:
        return self._payload

    # ─── Renderers ────────────────────────────────────────────

    def render_raster(self, quiet_zone: int = DEFAULT_QUIET_ZONE,
                      size: int = QR_CODE_EDGE_SIDE_PX):
        """RGBA Pillow image, `size` x `size`, Swiss cross overlaid."""
        return render_raster(self._matrix, quiet_zone=quiet_zone, size=size)

    def render_png(self, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
        return render_png(self._matrix, quiet_zone=quiet_zone)

    def render_svg(self, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
        return render_svg(self._matrix, quiet_zone=quiet_zone)

    def render_eps(self, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
        return render_eps(self._matrix, quiet_zone=quiet_zone)

    def render_pdf(self, quiet_zone: int = DEFAULT_QUIET_ZONE) -> bytes:
        return render_pdf(self._matrix, quiet_zone=quiet_zone)
