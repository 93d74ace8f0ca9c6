"""
QR-bill Types & Constants — Swiss Payments Code
=================================================

Foundational type definitions, constants, enumerations, and error classes
for the QR-bill system. This module has ZERO external dependencies beyond
the Python standard library.

Standard Authority:
  - Swiss Implementation Guidelines QR-bill, Version 2.1
    (https://www.paymentstandards.ch/dam/downloads/ig-qr-bill-en.pdf)
  - Section 4.1: field order and fixed values
  - Section 4.3.2: permitted characters
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

# ═══════════════════════════════════════════════════════════════
# FIXED VALUES (Header & Trailer)
# ═══════════════════════════════════════════════════════════════

# Unambiguous indicator for the Swiss QR Code
QR_TYPE = "SPC"          # Swiss Payments Code

# Main version (2 digits) + sub-version (2 digits)
VERSION = "0200"         # Version 2.0

# Character set code: UTF-8 restricted to the Latin character set
CODING_TYPE = "1"

# Unambiguous indicator for the end of payment data
TRAILER = "EPD"          # End Payment Data

# Number of newline-separated fields in the canonical payload
PAYLOAD_FIELD_COUNT = 31

# Total payload cap from the guidelines. Logged, not enforced.
MAX_PAYLOAD_CHARS = 997


# ═══════════════════════════════════════════════════════════════
# FIELD LIMITS
# ═══════════════════════════════════════════════════════════════

MAX_NAME = 70
MAX_ADDRESS_LINE1 = 70
MAX_ADDRESS_LINE2 = 16
MAX_TOWN = 35
MAX_REFERENCE_TYPE = 4
MAX_REFERENCE = 27
MAX_UNSTRUCTURED_MESSAGE = 140


# ═══════════════════════════════════════════════════════════════
# PHYSICAL SCALE
# ═══════════════════════════════════════════════════════════════

# The Swiss cross asset is 166px wide at 7mm physical size.
SWISS_CROSS_EDGE_SIDE_PX = 166
SWISS_CROSS_EDGE_SIDE_MM = 7

# Edge length of the QR code including its white border (42mm + 13mm)
QR_CODE_EDGE_SIDE_MM = 42 + 13

# floor(166 / 7) * 55 = 1265
QR_CODE_EDGE_SIDE_PX = (SWISS_CROSS_EDGE_SIDE_PX // SWISS_CROSS_EDGE_SIDE_MM
                        * QR_CODE_EDGE_SIDE_MM)

# Top-left corner of the centered cross: (1265 - 166) / 2 = 549
SWISS_CROSS_POSITION = (QR_CODE_EDGE_SIDE_PX - SWISS_CROSS_EDGE_SIDE_PX) // 2

DEFAULT_QUIET_ZONE = 4

# (x, y, width, height, gray) in cross-local coordinates. gray: 1 = white, 0 = black.
# Drawn literally by the EPS and PDF backends.
SWISS_CROSS_RECTS: Tuple[Tuple[int, int, int, int, int], ...] = (
    (0, 0, 166, 166, 1),     # white background square
    (12, 12, 142, 142, 0),   # black frame
    (36, 66, 94, 28, 1),     # horizontal bar
    (68, 34, 30, 92, 1),     # vertical bar
)

# Document metadata written by the EPS and PDF backends
CREATOR = "qrbill"
TITLE = "QR-Bill"


# ═══════════════════════════════════════════════════════════════
# ADDRESS TYPES (AdrTp in ISO 20022)
# ═══════════════════════════════════════════════════════════════

class AddressType(str, Enum):
    """Two permitted address encodings."""
    STRUCTURED = "S"    # Street / building number / postal code / town
    COMBINED   = "K"    # Two free-form address lines


def address_type_code(value) -> str:
    """Render an address type (enum, plain string or None) as its payload code."""
    if isinstance(value, AddressType):
        return value.value
    return value or ""


# ═══════════════════════════════════════════════════════════════
# PAYMENT RECORD
# ═══════════════════════════════════════════════════════════════

@dataclass
class Header:
    """Fixed header values. Always overwritten by validation."""
    qr_type: str = QR_TYPE
    version: str = VERSION
    coding_type: str = CODING_TYPE


@dataclass
class Address:
    """
    Postal address of a creditor or debtor.

    Limits after validation:
        name          : 70 chars
        address_line1 : 70 chars (street, or free-form line 1)
        address_line2 : 16 chars (building number, or free-form line 2)
        town          : 35 chars
    """
    address_type: str = ""
    name: str = ""
    address_line1: str = ""
    address_line2: str = ""
    postal_code: str = ""
    town: str = ""
    country: str = ""

    def fields(self) -> List[str]:
        """The seven payload lines of this address, in canonical order."""
        return [
            address_type_code(self.address_type),
            self.name,
            self.address_line1,
            self.address_line2,
            self.postal_code,
            self.town,
            self.country,
        ]


@dataclass
class CreditorInfo:
    """Account / Payable to."""
    iban: str = ""
    creditor: Address = field(default_factory=Address)


@dataclass
class AmountInfo:
    """Amount (decimal string, may be empty) and ISO 4217 currency."""
    amount: str = ""
    currency: str = ""


@dataclass
class RemittanceInfo:
    """Payment reference and additional information."""
    reference_type: str = ""
    reference: str = ""
    unstructured_message: str = ""
    trailer: str = TRAILER


@dataclass
class PaymentRecord:
    """
    Root of a QR-bill payment record. Caller-owned.

    The ultimate creditor is reserved for future use and must stay blank.
    """
    header: Header = field(default_factory=Header)
    creditor_info: CreditorInfo = field(default_factory=CreditorInfo)
    ultimate_creditor: Address = field(default_factory=Address)
    amount_info: AmountInfo = field(default_factory=AmountInfo)
    ultimate_debtor: Address = field(default_factory=Address)
    remittance_info: RemittanceInfo = field(default_factory=RemittanceInfo)


# ═══════════════════════════════════════════════════════════════
# BIT MATRIX
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BitMatrix:
    """
    Immutable QR module matrix, row-major. True = dark module.

    Produced by a QR matrix encoder, consumed by every renderer.
    """
    width: int
    height: int
    rows: Tuple[Tuple[bool, ...], ...]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence]) -> 'BitMatrix':
        """Build from any nested sequence of truthy values. Rows must be equal length."""
        frozen = tuple(tuple(bool(v) for v in row) for row in rows)
        height = len(frozen)
        width = len(frozen[0]) if height else 0
        for y, row in enumerate(frozen):
            if len(row) != width:
                raise IntegrityError(
                    f"Ragged matrix: row {y} has {len(row)} modules, expected {width}")
        return cls(width=width, height=height, rows=frozen)

    def get(self, x: int, y: int) -> bool:
        return self.rows[y][x]

    def dark_count(self) -> int:
        return sum(sum(row) for row in self.rows)


# ═══════════════════════════════════════════════════════════════
# ERROR CLASSES
# ═══════════════════════════════════════════════════════════════

class QRBillError(Exception):
    """Base error for all QR-bill operations."""
    pass

class EncodingError(QRBillError):
    """The QR matrix encoder rejected the payload (charset or capacity)."""
    pass

class IntegrityError(QRBillError):
    """Renderer received a missing or malformed matrix. Programming defect."""
    pass

class AssetError(IntegrityError):
    """Embedded asset missing or corrupt. Raised at import time."""
    pass
