"""
8080 Instruction Encoder
========================

This module turns one parsed statement into machine code bytes and a
pretty-printed mnemonic, consulting the symbol table for label operands.

Dispatch is by statement kind and, for the move family, by the shapes of
the destination and source operands. Every shape combination that has no
8080 instruction is rejected with an EncodingError.

Failure Tiers
-------------
- EncodingError (and ConstantRangeError): the statement cannot be
  encoded. Recoverable; the driver drops the statement and continues.
- UnresolvedLabelError: a jump names a label that is not yet defined.
  Fatal; it propagates out of the run.

Byte Order
----------
Addresses and LXI constants are little-endian, as the CPU reads them.
DW emits its word big-endian (high byte first), in reading order.

Example
-------
>>> from asm80.assembler.encoder import Encoder
>>> from asm80.assembler.symbols import SymbolTable
>>> from asm80.assembler.ast import Statement, Move, RegisterOperand, Constant
>>> from asm80.cpu import Register
>>> enc = Encoder(SymbolTable())
>>> enc.encode(Statement(Move(RegisterOperand(Register.A), Constant(0x41))))
EncodedInstruction(data=b'>A', text='mvi a, 41')
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from asm80.assembler.ast import (
    AddPair,
    Arithmetic,
    ArithmeticConstant,
    Constant,
    Decrement,
    DecrementPair,
    DefineByte,
    DefineWord,
    DirectMemory,
    In,
    Increment,
    IncrementPair,
    IndirectMemory,
    Inherent,
    Jump,
    LabelSet,
    Move,
    Negate,
    Operand,
    Out,
    PairOperand,
    Pop,
    PopPsw,
    Push,
    PushPsw,
    RegisterOperand,
    Restart,
    Return,
    Statement,
)
from asm80.assembler.symbols import SymbolTable, normalize_label
from asm80.cpu import Register, RegisterPair, RST_VECTORS, mov_opcode, rst_opcode
from asm80.cpu import i8080
from asm80.errors import ConstantRangeError, EncodingError

logger = logging.getLogger(__name__)


# =============================================================================
# Encoder Output
# =============================================================================

@dataclass(frozen=True)
class EncodedInstruction:
    """
    Bytes and mnemonic text for one encoded statement.

    Attributes:
        data: Machine code bytes (1 to 3)
        text: Lower-case pretty-printed instruction
    """
    data: bytes
    text: str

    def __len__(self) -> int:
        return len(self.data)


def _with_word(opcode: int, value: int) -> bytes:
    """Opcode followed by a little-endian 16-bit operand."""
    return bytes([opcode, value & 0xFF, (value >> 8) & 0xFF])


# =============================================================================
# Encoder
# =============================================================================

class Encoder:
    """
    Encodes statements into 8080 machine code.

    The encoder holds a reference to the driver's symbol table and never
    writes to it; label definitions are the driver's job.

    Usage:
        encoder = Encoder(symbols)
        encoded = encoder.encode(statement)
        code.extend(encoded.data)
    """

    def __init__(self, symbols: SymbolTable):
        self._symbols = symbols
        self._handlers: dict[type, Callable[[object, Statement], EncodedInstruction]] = {
            Inherent: self._encode_inherent,
            In: self._encode_in,
            Out: self._encode_out,
            Jump: self._encode_jump,
            Return: self._encode_return,
            Push: self._encode_push,
            Pop: self._encode_pop,
            PushPsw: self._encode_push_psw,
            PopPsw: self._encode_pop_psw,
            Arithmetic: self._encode_arithmetic,
            ArithmeticConstant: self._encode_arithmetic_constant,
            Increment: self._encode_increment,
            Decrement: self._encode_decrement,
            IncrementPair: self._encode_increment_pair,
            DecrementPair: self._encode_decrement_pair,
            AddPair: self._encode_add_pair,
            Restart: self._encode_restart,
            Negate: self._encode_negate,
            Move: self._encode_move,
            DefineByte: self._encode_define_byte,
            DefineWord: self._encode_define_word,
            LabelSet: self._encode_label_set,
        }

    def encode(self, stmt: Statement) -> EncodedInstruction:
        """
        Encode a single statement.

        Args:
            stmt: The statement to encode

        Returns:
            The encoded bytes and mnemonic text

        Raises:
            EncodingError: If the operands have no 8080 encoding
            UnresolvedLabelError: If a jump target is not yet defined
        """
        handler = self._handlers.get(type(stmt.kind))
        if handler is None:
            raise TypeError(f"unknown statement kind {type(stmt.kind).__name__}")
        return handler(stmt.kind, stmt)

    # =========================================================================
    # Error Helpers
    # =========================================================================

    def _reject(self, stmt: Statement, message: str, mnemonic: Optional[str] = None) -> EncodingError:
        return EncodingError(
            message,
            mnemonic=mnemonic,
            location=stmt.location,
            source_line=stmt.source_line,
        )

    def _check_byte(self, stmt: Statement, value: int, mnemonic: str) -> int:
        if not 0 <= value <= 0xFF:
            raise ConstantRangeError(
                value, 8, mnemonic=mnemonic,
                location=stmt.location, source_line=stmt.source_line,
            )
        return value

    def _check_word(self, stmt: Statement, value: int, mnemonic: str) -> int:
        if not 0 <= value <= 0xFFFF:
            raise ConstantRangeError(
                value, 16, mnemonic=mnemonic,
                location=stmt.location, source_line=stmt.source_line,
            )
        return value

    # =========================================================================
    # Simple Instructions
    # =========================================================================

    def _encode_inherent(self, kind: Inherent, stmt: Statement) -> EncodedInstruction:
        return EncodedInstruction(bytes([kind.op.code]), kind.op.mnemonic)

    def _encode_in(self, kind: In, stmt: Statement) -> EncodedInstruction:
        port = self._check_byte(stmt, kind.port, "in")
        return EncodedInstruction(bytes([i8080.IN.code, port]), f"in {port}")

    def _encode_out(self, kind: Out, stmt: Statement) -> EncodedInstruction:
        port = self._check_byte(stmt, kind.port, "out")
        return EncodedInstruction(bytes([i8080.OUT.code, port]), f"out {port}")

    def _encode_jump(self, kind: Jump, stmt: Statement) -> EncodedInstruction:
        address = self._symbols.resolve(kind.label, stmt.location, stmt.source_line)
        return EncodedInstruction(
            _with_word(kind.jump_type.code, address),
            f"{kind.jump_type.mnemonic} {normalize_label(kind.label)}",
        )

    def _encode_return(self, kind: Return, stmt: Statement) -> EncodedInstruction:
        return EncodedInstruction(bytes([kind.return_type.code]), kind.return_type.mnemonic)

    def _encode_restart(self, kind: Restart, stmt: Statement) -> EncodedInstruction:
        if kind.vector not in RST_VECTORS:
            raise EncodingError(
                f"RST vector {kind.vector} is not supported",
                mnemonic="rst",
                location=stmt.location,
                hint="valid vectors are " + ", ".join(str(v) for v in sorted(RST_VECTORS)),
                source_line=stmt.source_line,
            )
        return EncodedInstruction(bytes([rst_opcode(kind.vector)]), f"rst {kind.vector}")

    def _encode_negate(self, kind: Negate, stmt: Statement) -> EncodedInstruction:
        # NEG C assembles to CMC
        if kind.register is Register.A:
            return EncodedInstruction(bytes([i8080.CMA.code]), i8080.CMA.mnemonic)
        if kind.register is Register.C:
            return EncodedInstruction(bytes([i8080.CMC.code]), i8080.CMC.mnemonic)
        raise self._reject(stmt, f"neg is not supported for register {kind.register}", "neg")

    # =========================================================================
    # Stack
    # =========================================================================

    def _encode_push(self, kind: Push, stmt: Statement) -> EncodedInstruction:
        if not kind.pair.can_push:
            raise self._reject(stmt, "cannot push SP onto the stack", "push")
        return EncodedInstruction(bytes([kind.pair.push_code]), f"push {kind.pair}")

    def _encode_pop(self, kind: Pop, stmt: Statement) -> EncodedInstruction:
        if not kind.pair.can_push:
            raise self._reject(stmt, "cannot pop SP from the stack", "pop")
        return EncodedInstruction(bytes([kind.pair.pop_code]), f"pop {kind.pair}")

    def _encode_push_psw(self, kind: PushPsw, stmt: Statement) -> EncodedInstruction:
        return EncodedInstruction(bytes([i8080.PUSH_PSW.code]), "push psw")

    def _encode_pop_psw(self, kind: PopPsw, stmt: Statement) -> EncodedInstruction:
        return EncodedInstruction(bytes([i8080.POP_PSW.code]), "pop psw")

    # =========================================================================
    # Arithmetic, Increment and Decrement
    # =========================================================================

    def _encode_arithmetic(self, kind: Arithmetic, stmt: Statement) -> EncodedInstruction:
        opcode = kind.kind.register_base + kind.register.select
        return EncodedInstruction(bytes([opcode]), f"{kind.kind.register_mnemonic} {kind.register}")

    def _encode_arithmetic_constant(self, kind: ArithmeticConstant, stmt: Statement) -> EncodedInstruction:
        mnemonic = kind.kind.immediate_mnemonic
        value = self._check_byte(stmt, kind.value, mnemonic)
        return EncodedInstruction(bytes([kind.kind.immediate_code, value]), f"{mnemonic} {value:02X}")

    def _encode_increment(self, kind: Increment, stmt: Statement) -> EncodedInstruction:
        opcode = kind.register.row_opcode(*i8080.INR_ROW)
        return EncodedInstruction(bytes([opcode]), f"inr {kind.register}")

    def _encode_decrement(self, kind: Decrement, stmt: Statement) -> EncodedInstruction:
        opcode = kind.register.row_opcode(*i8080.DCR_ROW)
        return EncodedInstruction(bytes([opcode]), f"dcr {kind.register}")

    def _encode_increment_pair(self, kind: IncrementPair, stmt: Statement) -> EncodedInstruction:
        opcode = i8080.INX_BASE + kind.pair.block_offset
        return EncodedInstruction(bytes([opcode]), f"inx {kind.pair}")

    def _encode_decrement_pair(self, kind: DecrementPair, stmt: Statement) -> EncodedInstruction:
        opcode = i8080.DCX_BASE + kind.pair.block_offset
        return EncodedInstruction(bytes([opcode]), f"dcx {kind.pair}")

    def _encode_add_pair(self, kind: AddPair, stmt: Statement) -> EncodedInstruction:
        opcode = i8080.DAD_BASE + kind.pair.block_offset
        return EncodedInstruction(bytes([opcode]), f"dad {kind.pair}")

    # =========================================================================
    # Raw Data and Label Setting
    # =========================================================================

    def _encode_define_byte(self, kind: DefineByte, stmt: Statement) -> EncodedInstruction:
        value = self._check_byte(stmt, kind.value, "db")
        return EncodedInstruction(bytes([value]), f"db {value:02X}")

    def _encode_define_word(self, kind: DefineWord, stmt: Statement) -> EncodedInstruction:
        value = self._check_word(stmt, kind.value, "dw")
        return EncodedInstruction(value.to_bytes(2, "big"), f"dw {value:04X}")

    def _encode_label_set(self, kind: LabelSet, stmt: Statement) -> EncodedInstruction:
        raise self._reject(stmt, "lset defines a label and emits no code", "lset")

    # =========================================================================
    # Move Family
    # =========================================================================

    def _encode_move(self, kind: Move, stmt: Statement) -> EncodedInstruction:
        """Pick the move instruction from the destination operand shape."""
        dst = kind.dst
        if isinstance(dst, RegisterOperand):
            return self._move_to_register(dst.register, kind.src, stmt)
        if isinstance(dst, PairOperand):
            return self._move_to_pair(dst.pair, kind.src, stmt)
        if isinstance(dst, DirectMemory):
            return self._move_to_direct(dst.address, kind.src, stmt)
        if isinstance(dst, IndirectMemory):
            return self._move_to_indirect(dst.pair, kind.src, stmt)
        raise self._reject(stmt, "cannot move into a constant", "mov")

    def _move_to_register(self, dst: Register, src: Operand, stmt: Statement) -> EncodedInstruction:
        if isinstance(src, RegisterOperand):
            if dst is Register.M and src.register is Register.M:
                raise self._reject(stmt, "mov m, m has no encoding", "mov")
            return EncodedInstruction(
                bytes([mov_opcode(dst, src.register)]), f"mov {dst}, {src.register}"
            )

        if isinstance(src, Constant):
            value = self._check_byte(stmt, src.value, "mvi")
            opcode = dst.row_opcode(*i8080.MVI_ROW)
            return EncodedInstruction(bytes([opcode, value]), f"mvi {dst}, {value:02X}")

        if isinstance(src, DirectMemory):
            if dst is not Register.A:
                raise self._reject(stmt, f"cannot load register {dst} from memory", "lda")
            address = self._check_word(stmt, src.address, "lda")
            return EncodedInstruction(_with_word(i8080.LDA.code, address), f"lda {address:04X}")

        if isinstance(src, IndirectMemory):
            if dst is not Register.A:
                raise self._reject(stmt, f"cannot load register {dst} from indirect memory", "ldax")
            opcode = i8080.LDAX_CODES.get(src.pair)
            if opcode is None:
                raise self._reject(
                    stmt, f"cannot load register {dst} from indirect memory at {src.pair}", "ldax"
                )
            return EncodedInstruction(bytes([opcode]), f"ldax {src.pair}")

        raise self._reject(stmt, "cannot move a register pair into a register", "mov")

    def _move_to_pair(self, dst: RegisterPair, src: Operand, stmt: Statement) -> EncodedInstruction:
        if isinstance(src, Constant):
            value = self._check_word(stmt, src.value, "lxi")
            opcode = i8080.LXI_BASE + dst.block_offset
            return EncodedInstruction(_with_word(opcode, value), f"lxi {dst}, {value:04X}")

        if isinstance(src, PairOperand):
            if dst is RegisterPair.SP and src.pair is RegisterPair.HL:
                return EncodedInstruction(bytes([i8080.SPHL.code]), i8080.SPHL.mnemonic)
            if {dst, src.pair} == {RegisterPair.DE, RegisterPair.HL}:
                return EncodedInstruction(bytes([i8080.XCHG.code]), i8080.XCHG.mnemonic)
            raise self._reject(stmt, f"cannot move register pair {src.pair} into {dst}", "mov")

        if isinstance(src, DirectMemory):
            if dst is not RegisterPair.HL:
                raise self._reject(stmt, f"cannot load register pair {dst} from memory", "lhld")
            address = self._check_word(stmt, src.address, "lhld")
            return EncodedInstruction(_with_word(i8080.LHLD.code, address), f"lhld {address:04X}")

        if isinstance(src, IndirectMemory):
            if dst is RegisterPair.HL and src.pair is RegisterPair.SP:
                return EncodedInstruction(bytes([i8080.XTHL.code]), i8080.XTHL.mnemonic)
            raise self._reject(stmt, "indirect memory access is supported only for HL from SP", "xthl")

        raise self._reject(stmt, "cannot move a register into a register pair", "mov")

    def _move_to_direct(self, address: int, src: Operand, stmt: Statement) -> EncodedInstruction:
        if isinstance(src, RegisterOperand):
            if src.register is not Register.A:
                raise self._reject(stmt, f"cannot store register {src.register} into memory", "sta")
            address = self._check_word(stmt, address, "sta")
            return EncodedInstruction(_with_word(i8080.STA.code, address), f"sta {address:04X}")

        if isinstance(src, PairOperand):
            if src.pair is not RegisterPair.HL:
                raise self._reject(stmt, f"cannot store register pair {src.pair} into memory", "shld")
            address = self._check_word(stmt, address, "shld")
            return EncodedInstruction(_with_word(i8080.SHLD.code, address), f"shld {address:04X}")

        raise self._reject(stmt, "only registers can be stored into direct memory", "mov")

    def _move_to_indirect(self, pair: RegisterPair, src: Operand, stmt: Statement) -> EncodedInstruction:
        if isinstance(src, RegisterOperand):
            if src.register is not Register.A:
                raise self._reject(
                    stmt, f"cannot store register {src.register} into indirect memory", "stax"
                )
            opcode = i8080.STAX_CODES.get(pair)
            if opcode is None:
                raise self._reject(
                    stmt, f"cannot store register {src.register} into indirect memory at {pair}", "stax"
                )
            return EncodedInstruction(bytes([opcode]), f"stax {pair}")

        if isinstance(src, PairOperand):
            if pair is RegisterPair.SP and src.pair is RegisterPair.HL:
                return EncodedInstruction(bytes([i8080.XTHL.code]), i8080.XTHL.mnemonic)
            raise self._reject(stmt, "indirect memory access is supported only for HL from SP", "xthl")

        raise self._reject(stmt, "only registers can be stored into indirect memory", "mov")


# =============================================================================
# Convenience Functions
# =============================================================================

def encode_statement(stmt: Statement, symbols: SymbolTable) -> Optional[EncodedInstruction]:
    """
    Encode one statement, reporting recoverable failures as None.

    Args:
        stmt: The statement to encode
        symbols: Labels visible at this point of the program

    Returns:
        The encoded instruction, or None if the operands have no encoding

    Raises:
        UnresolvedLabelError: If a jump target is not defined
    """
    try:
        return Encoder(symbols).encode(stmt)
    except EncodingError as e:
        logger.warning(str(e))
        return None
