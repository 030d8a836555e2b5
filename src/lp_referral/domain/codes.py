"""Referral code encoding and share links.

A code travels three ways: as the bytes32 argument of buyToken, as the
0x-hex string stored in the cache, and inside a share link
``<origin>?listingId=<id>&referral=<code>``.
"""

from urllib.parse import parse_qs, urlencode, urlsplit

from src.lp_common.errors import InvalidReferralCodeError

BYTES32_LEN = 32
ZERO_CODE = bytes(BYTES32_LEN)


def encode_referral_code(code: str | None) -> bytes:
    """bytes32 argument for buyToken.

    0x-hex codes pass through unchanged, short text codes are UTF-8 encoded
    and right-padded with zeros, and a missing code is the zero hash.
    """
    if code is None or not code.strip():
        return ZERO_CODE
    code = code.strip()
    if code.startswith("0x"):
        try:
            raw = bytes.fromhex(code[2:])
        except ValueError as exc:
            raise InvalidReferralCodeError(f"{code!r} is not hex") from exc
        if len(raw) != BYTES32_LEN:
            raise InvalidReferralCodeError(f"{code!r} is not 32 bytes")
        return raw
    raw = code.encode("utf-8")
    # One byte is kept for the null terminator
    if len(raw) > BYTES32_LEN - 1:
        raise InvalidReferralCodeError(f"{code!r} is too long")
    return raw.ljust(BYTES32_LEN, b"\x00")


def build_referral_link(origin: str, listing_id: int, code: str) -> str:
    query = urlencode({"listingId": listing_id, "referral": code})
    separator = "&" if "?" in origin else "?"
    return f"{origin}{separator}{query}"


def parse_referral_link(link: str) -> tuple[int, str] | None:
    """(listing_id, code) from a share link, or None if it carries neither."""
    params = parse_qs(urlsplit(link).query)
    listing = params.get("listingId", [None])[0]
    code = params.get("referral", [None])[0]
    if listing is None or not code:
        return None
    try:
        listing_id = int(listing)
    except ValueError:
        return None
    if listing_id < 0:
        return None
    return listing_id, code
