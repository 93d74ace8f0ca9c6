"""
qrbill — Swiss QR-bill payment codes
======================================

Validates Swiss payment data, builds the canonical "SPC" payload and renders
the QR code with its Swiss cross as a raster image, SVG, EPS or PDF.
"""

from qrbill_types import (
    AddressType, Header, Address, CreditorInfo, AmountInfo, RemittanceInfo,
    PaymentRecord, BitMatrix,
    QRBillError, EncodingError, IntegrityError, AssetError,
)
from qrbill_encoder import (
    Bill, QrMatrixEncoder, QRCodeMatrixEncoder,
    validate, encode, normalize_amount, describe,
)
from qrbill_geometry import GeometryPlan, plan

__version__ = "1.0.0"
__all__ = [
    'validate', 'encode', 'normalize_amount', 'describe', 'plan',
    'Bill', 'QrMatrixEncoder', 'QRCodeMatrixEncoder', 'GeometryPlan',
    'AddressType', 'Header', 'Address', 'CreditorInfo', 'AmountInfo',
    'RemittanceInfo', 'PaymentRecord', 'BitMatrix',
    'QRBillError', 'EncodingError', 'IntegrityError', 'AssetError',
]
