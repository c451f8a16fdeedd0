"""
8080 Assembly Statement Model
=============================

This module defines the abstract syntax handed to the encoder: operands,
instruction kinds, statements and whole programs. The source reader builds
these from text, but they can equally be constructed directly in Python:

>>> from asm80.assembler.ast import Statement, Inherent, Jump, Program
>>> from asm80.cpu import InherentOp, JumpType
>>> program = Program([
...     Statement(Inherent(InherentOp.NOP)),
...     Statement(Inherent(InherentOp.HLT), label="L"),
...     Statement(Jump("L", JumpType.JMP)),
... ])
>>> len(program)
3

Node Hierarchy
--------------
Operand
├── RegisterOperand - 8-bit register (A..L, M)
├── PairOperand - 16-bit register pair (BC, DE, HL, SP)
├── DirectMemory - absolute 16-bit address, [nnnn]
├── IndirectMemory - memory through a register pair, [rp]
└── Constant - literal number, width checked by the encoder

StatementKind
├── Inherent - fixed single-byte instructions (NOP, HLT, DI, ...)
├── In / Out - port I/O
├── Jump - jumps and calls to a label
├── Return - unconditional and conditional returns
├── Push / Pop / PushPsw / PopPsw - stack
├── Arithmetic / ArithmeticConstant - accumulator ALU ops
├── Increment / Decrement - single register
├── IncrementPair / DecrementPair / AddPair - register pair
├── Restart - RST vector
├── Negate - one's complement
├── Move - the MOV family (MOV, MVI, LDA, STA, LXI, ...)
├── DefineByte / DefineWord - raw data
└── LabelSet - define a label at an explicit address

Design Notes
------------
- All nodes are frozen dataclasses; a Statement is immutable once built.
- Exactly one kind per statement, exactly one shape per operand.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from asm80.cpu import (
    ArithmeticType,
    InherentOp,
    JumpType,
    Register,
    RegisterPair,
    ReturnType,
)
from asm80.errors import SourceLocation


# =============================================================================
# Operands
# =============================================================================

@dataclass(frozen=True)
class RegisterOperand:
    """An 8-bit register, including the M pseudo-register."""
    register: Register

    def __str__(self) -> str:
        return str(self.register)


@dataclass(frozen=True)
class PairOperand:
    """A 16-bit register pair."""
    pair: RegisterPair

    def __str__(self) -> str:
        return str(self.pair)


@dataclass(frozen=True)
class DirectMemory:
    """Memory at a literal 16-bit address."""
    address: int

    def __str__(self) -> str:
        return f"[{self.address:04X}]"


@dataclass(frozen=True)
class IndirectMemory:
    """Memory at the address held in a register pair."""
    pair: RegisterPair

    def __str__(self) -> str:
        return f"[{self.pair}]"


@dataclass(frozen=True)
class Constant:
    """A literal number; the target instruction decides its legal width."""
    value: int

    def __str__(self) -> str:
        return f"{self.value:X}"


Operand = Union[RegisterOperand, PairOperand, DirectMemory, IndirectMemory, Constant]


# =============================================================================
# Statement Kinds
# =============================================================================

@dataclass(frozen=True)
class Inherent:
    op: InherentOp


@dataclass(frozen=True)
class In:
    port: int


@dataclass(frozen=True)
class Out:
    port: int


@dataclass(frozen=True)
class Jump:
    """
    Jump or call to a label.

    Attributes:
        label: Target label, with or without the leading '.' marker
        jump_type: Which jump/call, carrying opcode and mnemonic
    """
    label: str
    jump_type: JumpType = JumpType.JMP


@dataclass(frozen=True)
class Return:
    return_type: ReturnType = ReturnType.RET


@dataclass(frozen=True)
class Push:
    pair: RegisterPair


@dataclass(frozen=True)
class Pop:
    pair: RegisterPair


@dataclass(frozen=True)
class PushPsw:
    pass


@dataclass(frozen=True)
class PopPsw:
    pass


@dataclass(frozen=True)
class Arithmetic:
    """Accumulator op with a register operand (ADD B, CMP M, ...)."""
    register: Register
    kind: ArithmeticType


@dataclass(frozen=True)
class ArithmeticConstant:
    """Accumulator op with an immediate operand (ADI, CPI, ...)."""
    value: int
    kind: ArithmeticType


@dataclass(frozen=True)
class Increment:
    register: Register


@dataclass(frozen=True)
class Decrement:
    register: Register


@dataclass(frozen=True)
class IncrementPair:
    pair: RegisterPair


@dataclass(frozen=True)
class DecrementPair:
    pair: RegisterPair


@dataclass(frozen=True)
class AddPair:
    """DAD: add a register pair to HL."""
    pair: RegisterPair


@dataclass(frozen=True)
class Restart:
    vector: int


@dataclass(frozen=True)
class Negate:
    """One's complement of a register (only A, and C as CMC)."""
    register: Register


@dataclass(frozen=True)
class Move:
    """
    Generic move, ``dst <- src``.

    The encoder picks MOV, MVI, LDA, STA, LDAX, STAX, LXI, LHLD, SHLD,
    SPHL, XCHG or XTHL from the operand shapes, or rejects the pair.
    """
    dst: Operand
    src: Operand


@dataclass(frozen=True)
class DefineByte:
    value: int


@dataclass(frozen=True)
class DefineWord:
    value: int


@dataclass(frozen=True)
class LabelSet:
    """Bind the statement's label to an explicit address; emits nothing."""
    address: int


StatementKind = Union[
    Inherent, In, Out, Jump, Return,
    Push, Pop, PushPsw, PopPsw,
    Arithmetic, ArithmeticConstant,
    Increment, Decrement, IncrementPair, DecrementPair, AddPair,
    Restart, Negate, Move,
    DefineByte, DefineWord, LabelSet,
]


# =============================================================================
# Statements and Programs
# =============================================================================

@dataclass(frozen=True)
class Statement:
    """
    One assembly statement.

    Attributes:
        kind: The instruction kind
        label: Optional label defined by this statement (case-sensitive)
        location: Where the statement came from, for error reporting
        source_line: Source text of the statement, for error reporting
    """
    kind: StatementKind
    label: Optional[str] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)
    source_line: Optional[str] = field(default=None, compare=False, repr=False)


@dataclass
class Program:
    """An ordered sequence of statements; order fixes addresses and label visibility."""
    statements: list[Statement] = field(default_factory=list)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)
