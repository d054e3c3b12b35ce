"""
Dispatch label barcode decoder.

Two label encodings are in circulation and the only way to tell them apart
is the presence of a '-' anywhere in the scanned string:

* Hyphenated labels: '-' separated segments. DOE is the last two characters
  of segment 2, the dispatch number is segment 4 and the gross weight is
  segment 8 (all zero-based).
* Plain labels: only the trailing 15 characters matter (scanners may prepend
  noise). DOE is characters 0-1, dispatch number 2-4, gross weight the last
  three characters.

Gross weight carries one implied decimal digit. A decode either succeeds
completely or returns a single DecodeFailure; partial records are never
produced.
"""
import logging
import re
from typing import Optional, Union

from dispatch_engine.errors import BarcodeDecodeError
from dispatch_engine.schemas import BarcodeRecord, DecodeFailure, DecodeFailureKind

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = "-"
MIN_SEGMENTS = 9
DOE_SEGMENT_INDEX = 2
DISPATCH_SEGMENT_INDEX = 4
GROSS_WEIGHT_SEGMENT_INDEX = 8

PLAIN_WINDOW_LENGTH = 15
PLAIN_DOE = slice(0, 2)
PLAIN_DISPATCH = slice(2, 5)
PLAIN_GROSS_WEIGHT = slice(-3, None)

WEIGHT_SCALE = 10
# Significant digits beyond this are scanner garbage, not label fields.
MAX_FIELD_DIGITS = 18

# Leading digit run, the way the label readers have always parsed integers.
_LEADING_INT = re.compile(r"\s*\+?([0-9]+)")

DecodeResult = Union[BarcodeRecord, DecodeFailure]


def _parse_int(segment: str) -> Optional[int]:
    match = _LEADING_INT.match(segment)
    if not match:
        return None
    digits = match.group(1)
    if len(digits.lstrip("0")) > MAX_FIELD_DIGITS:
        return None
    return int(digits)


def _fail(kind: DecodeFailureKind, message: str) -> DecodeFailure:
    logger.warning(f"[Barcode] {kind.value}: {message}")
    return DecodeFailure(kind=kind, message=message)


def _build(doe: str, dispatch_segment: str, weight_segment: str, raw: str) -> DecodeResult:
    dispatch = _parse_int(dispatch_segment)
    if dispatch is None:
        return _fail(
            DecodeFailureKind.INVALID_DISPATCH_NUMBER,
            f"Could not parse dispatch number from {dispatch_segment!r} in {raw!r}",
        )

    weight = _parse_int(weight_segment)
    if weight is None:
        return _fail(
            DecodeFailureKind.INVALID_GROSS_WEIGHT,
            f"Could not parse gross weight from {weight_segment!r} in {raw!r}",
        )

    return BarcodeRecord(
        doe=doe,
        dispatch_number=str(dispatch),
        gross_weight=weight / WEIGHT_SCALE,
    )


def _decode_hyphenated(raw: str) -> DecodeResult:
    segments = raw.split(SEGMENT_SEPARATOR)
    if len(segments) < MIN_SEGMENTS:
        return _fail(
            DecodeFailureKind.TOO_FEW_SEGMENTS,
            f"{raw!r} has {len(segments)} segments, expected at least {MIN_SEGMENTS}",
        )

    doe_segment = segments[DOE_SEGMENT_INDEX]
    if len(doe_segment) < 2:
        return _fail(
            DecodeFailureKind.DOE_SEGMENT_TOO_SHORT,
            f"DOE segment {doe_segment!r} in {raw!r} is too short",
        )

    return _build(
        doe_segment[-2:],
        segments[DISPATCH_SEGMENT_INDEX],
        segments[GROSS_WEIGHT_SEGMENT_INDEX],
        raw,
    )


def _decode_plain(raw: str) -> DecodeResult:
    if len(raw) < PLAIN_WINDOW_LENGTH:
        return _fail(
            DecodeFailureKind.TOO_SHORT,
            f"{raw!r} is {len(raw)} characters, expected at least {PLAIN_WINDOW_LENGTH}",
        )

    window = raw[-PLAIN_WINDOW_LENGTH:]
    return _build(window[PLAIN_DOE], window[PLAIN_DISPATCH], window[PLAIN_GROSS_WEIGHT], raw)


def decode(raw: str) -> DecodeResult:
    """
    Decode a raw scanned label.

    Returns a BarcodeRecord on success, otherwise a DecodeFailure naming the
    first rule the input broke.
    """
    if not raw:
        return _fail(DecodeFailureKind.EMPTY_INPUT, "Barcode string is empty")

    if SEGMENT_SEPARATOR in raw:
        return _decode_hyphenated(raw)
    return _decode_plain(raw)


def decode_or_raise(raw: str) -> BarcodeRecord:
    result = decode(raw)
    if isinstance(result, DecodeFailure):
        raise BarcodeDecodeError(result)
    return result
