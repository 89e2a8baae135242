import unittest

from footprint.adapters.ledger.static_ledger_adapter import StaticLedgerAdapter
from footprint.config import settings
from footprint.core.dto import Instruction, ParsedTransaction, RawAccountInfo, SignatureInfo
from footprint.core.errors import AccountQueryError, DataSourceError
from footprint.services.special_programs import SpecialProgramResolver

TOKEN = settings.TOKEN_PROGRAM_ID
OTHER = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _tx(sig: str, keys, instructions, block_time: int = 1_700_000_000) -> ParsedTransaction:
    return ParsedTransaction(
        signature=sig,
        account_keys=tuple(keys),
        instructions=tuple(instructions),
        block_time=block_time,
    )


class SpecialProgramResolverTests(unittest.TestCase):
    def _token_ledger(self, **overrides) -> StaticLedgerAdapter:
        # sig1 touches src, dst, owner; sig2 touches dst again plus mint
        tx1 = _tx(
            "sig1",
            ["payer", "src", "dst", "owner", TOKEN],
            [Instruction.compiled(4, [1, 2, 3], "3Bxs4")],
        )
        tx2 = _tx(
            "sig2",
            ["payer2", "dst", "mint", TOKEN],
            [Instruction.decoded(TOKEN, ["dst", "mint", "dst"], "6AuM4")],
        )
        defaults = dict(
            signatures={TOKEN: [SignatureInfo("sig1"), SignatureInfo("sig2")]},
            transactions=[tx1, tx2],
            account_infos={
                "src": RawAccountInfo(owner=TOKEN, data_len=165, executable=False, lamports=2_039_280),
                "mint": RawAccountInfo(owner=TOKEN, data_len=82, executable=False, lamports=1_461_600),
            },
        )
        defaults.update(overrides)
        return StaticLedgerAdapter(**defaults)

    def test_non_special_address_falls_through(self) -> None:
        resolver = SpecialProgramResolver(StaticLedgerAdapter())
        self.assertFalse(resolver.is_special(OTHER))
        self.assertIsNone(resolver.resolve(OTHER))

    def test_known_programs_are_special(self) -> None:
        resolver = SpecialProgramResolver(StaticLedgerAdapter())
        for addr in (settings.TOKEN_PROGRAM_ID, settings.SYSTEM_PROGRAM_ID, settings.METADATA_PROGRAM_ID):
            self.assertTrue(resolver.is_special(addr))

    def test_token_program_accounts_are_deduplicated_in_first_seen_order(self) -> None:
        result = SpecialProgramResolver(self._token_ledger()).resolve(TOKEN)

        self.assertEqual(result.program_type, "Token Program")
        self.assertEqual([a.address for a in result.accounts], ["src", "dst", "owner", "mint"])
        for a in result.accounts:
            self.assertEqual(a.owner, TOKEN)
            self.assertEqual(a.classification, "Token Account")

    def test_lookup_refines_size_and_balance(self) -> None:
        result = SpecialProgramResolver(self._token_ledger()).resolve(TOKEN)
        by_addr = {a.address: a for a in result.accounts}

        self.assertEqual(by_addr["src"].balance, 2_039_280)
        self.assertEqual(by_addr["mint"].size_bytes, 82)
        # no account info: nominal defaults stay
        self.assertEqual(by_addr["dst"].size_bytes, settings.TOKEN_ACCOUNT_SIZE)
        self.assertEqual(by_addr["dst"].balance, 0)

    def test_failed_lookup_keeps_nominal_defaults(self) -> None:
        ledger = self._token_ledger(failures={"get_account_info:src": DataSourceError("boom")})
        result = SpecialProgramResolver(ledger).resolve(TOKEN)
        src = next(a for a in result.accounts if a.address == "src")

        self.assertEqual(src.size_bytes, settings.TOKEN_ACCOUNT_SIZE)
        self.assertEqual(src.balance, 0)
        self.assertEqual(len(result.accounts), 4)

    def test_unresolvable_transaction_is_skipped(self) -> None:
        ledger = self._token_ledger(failures={"get_parsed_transaction:sig1": DataSourceError("pruned")})
        result = SpecialProgramResolver(ledger).resolve(TOKEN)
        self.assertEqual([a.address for a in result.accounts], ["dst", "mint"])

    def test_signature_fetch_failure_aborts(self) -> None:
        ledger = self._token_ledger(failures={"list_recent_signatures": DataSourceError("down")})
        with self.assertRaises(AccountQueryError):
            SpecialProgramResolver(ledger).resolve(TOKEN)

    def test_signature_window_is_bounded(self) -> None:
        sigs = [SignatureInfo(f"s{i}") for i in range(30)]
        ledger = StaticLedgerAdapter(signatures={TOKEN: sigs})
        SpecialProgramResolver(ledger, signature_limit=10).resolve(TOKEN)

        fetched = [c for c in ledger.calls if c.startswith("get_parsed_transaction:")]
        self.assertEqual(len(fetched), 10)

    def test_system_program_uses_its_own_label(self) -> None:
        system = settings.SYSTEM_PROGRAM_ID
        tx = _tx("sig", ["payer", "dest", system], [Instruction.compiled(2, [0, 1])])
        ledger = StaticLedgerAdapter(signatures={system: [SignatureInfo("sig")]}, transactions=[tx])
        result = SpecialProgramResolver(ledger).resolve(system)

        self.assertEqual(result.program_type, "System Program")
        self.assertEqual([a.classification for a in result.accounts], ["System Account", "System Account"])


if __name__ == "__main__":
    unittest.main()
