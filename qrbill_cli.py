"""
QR-bill command line.

Builds a PaymentRecord from flags and writes one output format:

    qrbill --amount 50 --message "Spende 420" --format svg -o bill.svg
    qrbill --format txt          # validated record, for debugging
    qrbill --format payload      # raw QR payload text
"""

import os
import sys
import json
import logging
import argparse

from qrbill_types import (
    AddressType, Address, AmountInfo, CreditorInfo, PaymentRecord, RemittanceInfo,
    QRBillError,
)
from qrbill_encoder import describe, encode

logger = logging.getLogger(__name__)

FORMATS = ("png", "svg", "eps", "pdf", "txt", "payload")
BINARY_FORMATS = ("png", "pdf")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def log_level(value: str) -> str:
    level = value.upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(
            f"invalid log level {value!r} (choose from {', '.join(LOG_LEVELS)})")
    return level


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="qrbill", description="Generate a Swiss QR-bill code.")
    p.add_argument("--format", choices=FORMATS, default="png")
    p.add_argument("-o", "--output", help="output file (default: stdout)")
    p.add_argument("--log-level", type=log_level,
                   default=os.environ.get("QRBILL_LOG_LEVEL", "WARNING"))

    cr = p.add_argument_group("creditor")
    cr.add_argument("--criban", default="CH0209000000870913543")
    cr.add_argument("--craddrtype", default=AddressType.COMBINED.value, choices=["S", "K"])
    cr.add_argument("--crname", default="Legalize it!")
    cr.add_argument("--craddr1", default="Quellenstrasse 25")
    cr.add_argument("--craddr2", default="8005 Zürich")
    cr.add_argument("--crpost", default="")
    cr.add_argument("--crcity", default="")
    cr.add_argument("--crcountry", default="CH")

    p.add_argument("--amount", default="")
    p.add_argument("--currency", default="CHF")

    ud = p.add_argument_group("ultimate debtor")
    ud.add_argument("--udaddrtype", default=AddressType.COMBINED.value, choices=["S", "K"])
    ud.add_argument("--udname", default="Michael Stapelberg")
    ud.add_argument("--udaddr1", default="Stauffacherstr 42")
    ud.add_argument("--udaddr2", default="8004 Zürich")
    ud.add_argument("--udpost", default="")
    ud.add_argument("--udcity", default="")
    ud.add_argument("--udcountry", default="CH")

    p.add_argument("--reftype", default="NON")
    p.add_argument("--ref", default="")
    p.add_argument("--message", default="Spende 420")
    return p


def record_from_args(args: argparse.Namespace) -> PaymentRecord:
    return PaymentRecord(
        creditor_info=CreditorInfo(
            iban=args.criban,
            creditor=Address(
                address_type=AddressType(args.craddrtype),
                name=args.crname,
                address_line1=args.craddr1,
                address_line2=args.craddr2,
                postal_code=args.crpost,
                town=args.crcity,
                country=args.crcountry,
            ),
        ),
        amount_info=AmountInfo(amount=args.amount, currency=args.currency),
        ultimate_debtor=Address(
            address_type=AddressType(args.udaddrtype),
            name=args.udname,
            address_line1=args.udaddr1,
            address_line2=args.udaddr2,
            postal_code=args.udpost,
            town=args.udcity,
            country=args.udcountry,
        ),
        remittance_info=RemittanceInfo(
            reference_type=args.reftype,
            reference=args.ref,
            unstructured_message=args.message,
        ),
    )


def render(record: PaymentRecord, fmt: str) -> bytes:
    if fmt == "txt":
        return (json.dumps(describe(record), indent=2, ensure_ascii=False) + "\n").encode("utf-8")
    bill = encode(record)
    if fmt == "payload":
        return bill.encode_to_string().encode("utf-8")
    return {
        "png": bill.render_png,
        "svg": bill.render_svg,
        "eps": bill.render_eps,
        "pdf": bill.render_pdf,
    }[fmt]()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.output and args.format in BINARY_FORMATS and sys.stdout.isatty():
        print("not writing raw binary data to terminal, did you forget to redirect "
              "the output?", file=sys.stderr)
        return 2

    try:
        data = render(record_from_args(args), args.format)
    except QRBillError as exc:
        logger.error("%s", exc)
        return 1

    if args.output:
        with open(args.output, "wb") as f:
            f.write(data)
        logger.info("wrote %d bytes to %s", len(data), args.output)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
