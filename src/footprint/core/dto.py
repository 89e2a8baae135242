from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class RawAccount:
    pubkey: str
    owner: str
    data_len: int
    executable: bool
    lamports: int


@dataclass(frozen=True)
class RawAccountInfo:
    owner: str
    data_len: int
    executable: bool
    lamports: int
    data: bytes = b""       # raw payload, only kept when the caller needs it (IDL)


@dataclass(frozen=True)
class SignatureInfo:
    signature: str
    block_time: Optional[int] = None


class InstructionKind(str, Enum):
    # Wire form: program and accounts are indexes into the message account keys.
    COMPILED = "compiled"
    # Decoded by the node: program id and account keys are given directly.
    PARTIALLY_DECODED = "partially_decoded"


@dataclass(frozen=True)
class Instruction:
    """
    One instruction as returned by the ledger.

    Only PARTIALLY_DECODED carries the invoked program id directly; a COMPILED
    instruction must be resolved against its transaction's account keys.
    """

    kind: InstructionKind
    program_id: Optional[str] = None
    program_id_index: Optional[int] = None
    accounts: Tuple[str, ...] = ()
    account_indexes: Tuple[int, ...] = ()
    data: str = ""

    @classmethod
    def compiled(cls, program_id_index: int, account_indexes, data: str = "") -> "Instruction":
        return cls(
            kind=InstructionKind.COMPILED,
            program_id_index=int(program_id_index),
            account_indexes=tuple(int(i) for i in account_indexes),
            data=data,
        )

    @classmethod
    def decoded(cls, program_id: str, accounts, data: str = "") -> "Instruction":
        return cls(
            kind=InstructionKind.PARTIALLY_DECODED,
            program_id=program_id,
            accounts=tuple(accounts),
            data=data,
        )


@dataclass(frozen=True)
class InnerInstructionSet:
    index: int                                  # position of the parent top-level instruction
    instructions: Tuple[Instruction, ...] = ()


@dataclass(frozen=True)
class ParsedTransaction:
    signature: str
    account_keys: Tuple[str, ...]
    instructions: Tuple[Instruction, ...] = ()
    inner_instructions: Tuple[InnerInstructionSet, ...] = ()
    block_time: Optional[int] = None

    @property
    def fee_payer(self) -> Optional[str]:
        return self.account_keys[0] if self.account_keys else None

    def _key_at(self, index: Optional[int]) -> Optional[str]:
        if index is None or index < 0 or index >= len(self.account_keys):
            return None
        return self.account_keys[index]

    def program_of(self, ix: Instruction) -> Optional[str]:
        if ix.kind is InstructionKind.PARTIALLY_DECODED:
            return ix.program_id or None
        return self._key_at(ix.program_id_index)

    def accounts_of(self, ix: Instruction) -> Tuple[str, ...]:
        if ix.kind is InstructionKind.PARTIALLY_DECODED:
            return ix.accounts
        keys = (self._key_at(i) for i in ix.account_indexes)
        return tuple(k for k in keys if k is not None)

    def iter_inner(self):
        """Yield inner instructions in ledger order."""
        for group in self.inner_instructions:
            for ix in group.instructions:
                yield ix
