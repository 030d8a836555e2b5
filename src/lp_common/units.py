"""Integer arithmetic utilities for raw <-> display token amounts.

Raw amounts are unsigned integers scaled by the asset's decimal count, as
stored on-chain. Display amounts are fixed-point decimal strings. No float
is ever involved: 18 fractional digits do not survive a binary double.
"""

import re

from src.lp_common.errors import InvalidAmountError

MAX_UINT256 = 2**256 - 1

_NUMBER_RE = re.compile(r"(\d+)(?:\.(\d*))?")


def validate_decimals(decimals: int) -> None:
    """Token decimal counts fit a uint8 on-chain; we accept [0, 77]."""
    if not (0 <= decimals <= 77):
        raise ValueError(f"Decimals must be between 0 and 77, got {decimals}")


def to_display(raw: int, decimals: int) -> str:
    """Render a raw amount as a fixed-point string: 20_000_000, 6 -> '20.0'."""
    validate_decimals(decimals)
    if raw < 0:
        raise ValueError(f"Raw amount must be unsigned, got {raw}")
    if decimals == 0:
        return str(raw)
    whole, frac = divmod(raw, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"


def normalize_amount_text(text: str) -> str:
    """Strip whitespace and accept a comma as the decimal separator."""
    cleaned = text.strip().replace(" ", "")
    if "," in cleaned:
        if "." in cleaned:
            raise InvalidAmountError(text, "mixed ',' and '.' separators")
        cleaned = cleaned.replace(",", ".")
    if cleaned.startswith("."):
        cleaned = "0" + cleaned
    return cleaned


def to_raw(text: str, decimals: int) -> int:
    """Parse a display amount into raw units.

    Rejects empty, non-numeric, signed or scientific input, and fractions
    with more significant digits than the asset can represent. Extra
    trailing zeros past the precision are tolerated ('1.500' with 2 decimals).
    """
    validate_decimals(decimals)
    if not isinstance(text, str):
        raise InvalidAmountError(text, "expected a decimal string")
    cleaned = normalize_amount_text(text)
    if not cleaned:
        raise InvalidAmountError(text, "empty")
    if cleaned.startswith("-"):
        raise InvalidAmountError(text, "negative amounts are not allowed")
    match = _NUMBER_RE.fullmatch(cleaned)
    if match is None:
        raise InvalidAmountError(text, "not a decimal number")

    whole, frac = match.group(1), (match.group(2) or "")
    if len(frac) > decimals:
        if frac[decimals:].strip("0"):
            raise InvalidAmountError(text, f"more than {decimals} fractional digits")
        frac = frac[:decimals]
    return int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")


def rescale(raw: int, from_decimals: int, to_decimals: int) -> int:
    """Move a raw amount between decimal scales, truncating toward zero."""
    if to_decimals >= from_decimals:
        return raw * 10 ** (to_decimals - from_decimals)
    return raw // 10 ** (from_decimals - to_decimals)
