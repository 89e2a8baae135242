from __future__ import annotations

import json
import struct
import zlib
from typing import Any, Dict, Optional

from solders.pubkey import Pubkey

from footprint.core.addresses import parse_pubkey
from footprint.core.models import IdlAccount, IdlInstruction, ProgramIdl
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort

logger = get_logger(__name__)

IDL_SEED = "anchor:idl"

# IdlAccount layout: 8 discriminator + 32 authority + u32 data_len + zlib(json)
_HEADER_LEN = 8 + 32
_LEN_FIELD = struct.Struct("<I")


def idl_address(program_id: str) -> str:
    """Anchor IDL account: create_with_seed(pda([]), "anchor:idl", program)."""
    program = parse_pubkey(program_id)
    base, _ = Pubkey.find_program_address([], program)
    return str(Pubkey.create_with_seed(base, IDL_SEED, program))


def decode_idl_account(data: bytes) -> Optional[Dict[str, Any]]:
    if len(data) < _HEADER_LEN + _LEN_FIELD.size:
        return None
    (length,) = _LEN_FIELD.unpack_from(data, _HEADER_LEN)
    start = _HEADER_LEN + _LEN_FIELD.size
    try:
        raw = zlib.decompress(data[start:start + length])
        idl = json.loads(raw)
    except (zlib.error, ValueError):
        return None
    return idl if isinstance(idl, dict) else None


def _is_mut(acc: Dict[str, Any]) -> bool:
    # legacy IDLs use isMut, 0.30+ uses writable
    return bool(acc.get("isMut", acc.get("writable", False)))


def _flatten_accounts(accounts) -> list:
    out = []
    for acc in accounts or []:
        if not isinstance(acc, dict):
            continue
        # nested account groups
        if "accounts" in acc:
            out.extend(_flatten_accounts(acc["accounts"]))
            continue
        out.append(IdlAccount(name=str(acc.get("name", "")), is_mut=_is_mut(acc)))
    return out


def parse_idl(idl: Dict[str, Any]) -> ProgramIdl:
    metadata = idl.get("metadata") or {}
    return ProgramIdl(
        name=idl.get("name") or metadata.get("name"),
        version=idl.get("version") or metadata.get("version"),
        instructions=tuple(
            IdlInstruction(
                name=str(ix.get("name", "")),
                accounts=tuple(_flatten_accounts(ix.get("accounts"))),
            )
            for ix in idl.get("instructions") or []
            if isinstance(ix, dict)
        ),
    )


class IdlFetcher:

    def __init__(self, ledger: LedgerPort) -> None:
        self.ledger = ledger

    def fetch(self, program_id: str) -> Optional[ProgramIdl]:
        address = idl_address(program_id)
        info = self.ledger.get_account_info(address)
        if info is None or not info.data:
            logger.info("idl_not_found", program=program_id, idl_address=address)
            return None

        idl = decode_idl_account(info.data)
        if idl is None:
            logger.warning("idl_undecodable", program=program_id, idl_address=address)
            return None
        return parse_idl(idl)
