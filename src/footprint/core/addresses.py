from __future__ import annotations

from solders.pubkey import Pubkey

from footprint.core.errors import InvalidAddressError


def parse_pubkey(address: str) -> Pubkey:
    try:
        return Pubkey.from_string((address or "").strip())
    except ValueError as e:
        raise InvalidAddressError(f"Not a valid program address: {address!r}") from e


def validate_address(address: str) -> str:
    """Return the canonical base58 form of ``address``."""
    return str(parse_pubkey(address))
