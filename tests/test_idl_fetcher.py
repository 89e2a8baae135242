import json
import struct
import unittest
import zlib

from footprint.adapters.ledger.static_ledger_adapter import StaticLedgerAdapter
from footprint.core.dto import RawAccountInfo
from footprint.services.idl_fetcher import IdlFetcher, decode_idl_account, idl_address, parse_idl

PROGRAM = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"

LEGACY_IDL = {
    "version": "0.1.0",
    "name": "counter",
    "instructions": [
        {
            "name": "increment",
            "accounts": [
                {"name": "counter", "isMut": True, "isSigner": False},
                {"name": "authority", "isMut": False, "isSigner": True},
            ],
            "args": [],
        },
    ],
}


def _idl_account_data(idl: dict) -> bytes:
    packed = zlib.compress(json.dumps(idl).encode())
    return b"\x18" * 8 + b"\x07" * 32 + struct.pack("<I", len(packed)) + packed + b"\x00" * 16


class IdlFetcherTests(unittest.TestCase):
    def test_idl_address_is_deterministic_and_distinct(self) -> None:
        addr = idl_address(PROGRAM)
        self.assertEqual(addr, idl_address(PROGRAM))
        self.assertNotEqual(addr, PROGRAM)

    def test_fetch_decodes_legacy_idl(self) -> None:
        data = _idl_account_data(LEGACY_IDL)
        ledger = StaticLedgerAdapter(account_infos={
            idl_address(PROGRAM): RawAccountInfo(owner=PROGRAM, data_len=len(data), executable=False, lamports=1, data=data),
        })

        idl = IdlFetcher(ledger).fetch(PROGRAM)

        self.assertEqual((idl.name, idl.version), ("counter", "0.1.0"))
        self.assertEqual([ix.name for ix in idl.instructions], ["increment"])
        self.assertEqual([(a.name, a.is_mut) for a in idl.instructions[0].accounts],
                         [("counter", True), ("authority", False)])

    def test_new_format_metadata_and_writable(self) -> None:
        idl = parse_idl({
            "address": PROGRAM,
            "metadata": {"name": "vault", "version": "0.2.0"},
            "instructions": [
                {"name": "deposit", "accounts": [
                    {"name": "vault", "writable": True},
                    {"name": "group", "accounts": [{"name": "inner", "writable": False}]},
                ]},
            ],
        })
        self.assertEqual((idl.name, idl.version), ("vault", "0.2.0"))
        self.assertEqual([(a.name, a.is_mut) for a in idl.instructions[0].accounts],
                         [("vault", True), ("inner", False)])

    def test_missing_account_means_no_idl(self) -> None:
        self.assertIsNone(IdlFetcher(StaticLedgerAdapter()).fetch(PROGRAM))

    def test_garbage_data_is_not_an_idl(self) -> None:
        self.assertIsNone(decode_idl_account(b"\x00" * 10))
        self.assertIsNone(decode_idl_account(b"\x00" * 40 + struct.pack("<I", 5) + b"nope!"))


if __name__ == "__main__":
    unittest.main()
