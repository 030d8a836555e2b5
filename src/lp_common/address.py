"""Address helpers. Every address comparison in the system is case-insensitive."""

import re

from src.lp_common.errors import InvalidAddressError

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value: object) -> bool:
    return isinstance(value, str) and _ADDRESS_RE.fullmatch(value) is not None


def normalize_address(value: str) -> str:
    """Lower-cased form used for keys and comparisons."""
    if not is_address(value):
        raise InvalidAddressError(value)
    return value.lower()


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()
