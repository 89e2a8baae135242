import unittest
from datetime import datetime, timezone

from footprint.adapters.ledger.static_ledger_adapter import StaticLedgerAdapter
from footprint.core.dto import InnerInstructionSet, Instruction, ParsedTransaction, SignatureInfo
from footprint.core.errors import DataSourceError
from footprint.services.cpi_extractor import CpiExtractor

PROGRAM = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
TOKEN = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SYSTEM = "11111111111111111111111111111111"


def _tx(sig: str, payer: str, inner, block_time=1_700_000_000) -> ParsedTransaction:
    return ParsedTransaction(
        signature=sig,
        account_keys=(payer, "vault", "user", PROGRAM, TOKEN, SYSTEM),
        instructions=(Instruction.compiled(3, [1, 2]),),
        inner_instructions=tuple(inner),
        block_time=block_time,
    )


class CpiExtractorTests(unittest.TestCase):
    def test_edges_follow_signature_then_instruction_order(self) -> None:
        newest = _tx(
            "sigA",
            "payerA",
            [
                InnerInstructionSet(0, (
                    Instruction.compiled(4, [1, 2], "3Bxs"),
                    Instruction.decoded(SYSTEM, ["user", "vault"], "11"),
                )),
            ],
            block_time=1_700_000_100,
        )
        older = _tx(
            "sigB",
            "payerB",
            [InnerInstructionSet(0, (Instruction.decoded(TOKEN, ["vault"], "9z"),))],
            block_time=1_700_000_000,
        )
        ledger = StaticLedgerAdapter(
            signatures={PROGRAM: [SignatureInfo("sigA"), SignatureInfo("sigB")]},
            transactions=[older, newest],
        )

        edges = CpiExtractor(ledger).extract(PROGRAM, limit=10)

        self.assertEqual([(e.signature, e.callee) for e in edges],
                         [("sigA", TOKEN), ("sigA", SYSTEM), ("sigB", TOKEN)])
        self.assertEqual(edges[0].caller, "payerA")
        self.assertEqual(edges[0].involved_accounts, ("vault", "user"))
        self.assertEqual(edges[0].payload, "3Bxs")
        self.assertEqual(edges[1].involved_accounts, ("user", "vault"))
        self.assertEqual(edges[2].caller, "payerB")
        self.assertEqual(edges[0].occurred_at, datetime.fromtimestamp(1_700_000_100, tz=timezone.utc))

    def test_missing_transactions_are_skipped(self) -> None:
        ok = _tx("sigB", "payer", [InnerInstructionSet(0, (Instruction.decoded(TOKEN, [], ""),))])
        ledger = StaticLedgerAdapter(
            signatures={PROGRAM: [SignatureInfo("pruned"), SignatureInfo("sigB"), SignatureInfo("broken")]},
            transactions=[ok],
            failures={"get_parsed_transaction:broken": DataSourceError("node error")},
        )

        edges = CpiExtractor(ledger).extract(PROGRAM)
        self.assertEqual([e.signature for e in edges], ["sigB"])

    def test_instruction_without_program_is_ignored(self) -> None:
        tx = _tx(
            "sig",
            "payer",
            [InnerInstructionSet(0, (
                Instruction.compiled(42, [0]),            # index outside account keys
                Instruction.decoded("", ["vault"]),       # no program id
                Instruction.decoded(TOKEN, ["vault"]),
            ))],
        )
        ledger = StaticLedgerAdapter(signatures={PROGRAM: [SignatureInfo("sig")]}, transactions=[tx])

        edges = CpiExtractor(ledger).extract(PROGRAM)
        self.assertEqual([e.callee for e in edges], [TOKEN])

    def test_no_inner_instructions_means_no_edges(self) -> None:
        tx = _tx("sig", "payer", [])
        ledger = StaticLedgerAdapter(signatures={PROGRAM: [SignatureInfo("sig")]}, transactions=[tx])
        self.assertEqual(CpiExtractor(ledger).extract(PROGRAM), [])

    def test_edge_count_is_bounded_by_window(self) -> None:
        per_tx = 3
        txs = [
            _tx(f"s{i}", "payer", [InnerInstructionSet(0, tuple(Instruction.decoded(TOKEN, []) for _ in range(per_tx)))])
            for i in range(20)
        ]
        ledger = StaticLedgerAdapter(
            signatures={PROGRAM: [SignatureInfo(t.signature) for t in txs]},
            transactions=txs,
        )

        edges = CpiExtractor(ledger).extract(PROGRAM, limit=5)
        self.assertLessEqual(len(edges), 5 * per_tx)
        self.assertEqual(len(edges), 15)

    def test_unknown_block_time_leaves_timestamp_empty(self) -> None:
        tx = _tx("sig", "payer", [InnerInstructionSet(0, (Instruction.decoded(TOKEN, []),))], block_time=None)
        ledger = StaticLedgerAdapter(signatures={PROGRAM: [SignatureInfo("sig")]}, transactions=[tx])
        self.assertIsNone(CpiExtractor(ledger).extract(PROGRAM)[0].occurred_at)

    def test_signature_listing_failure_propagates(self) -> None:
        ledger = StaticLedgerAdapter(failures={"list_recent_signatures": DataSourceError("down")})
        with self.assertRaises(DataSourceError):
            CpiExtractor(ledger).extract(PROGRAM)


if __name__ == "__main__":
    unittest.main()
