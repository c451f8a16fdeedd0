# =============================================================================
# test_encoder.py - 8080 Instruction Encoder Tests
# =============================================================================
# Tests for encoding single statements into machine code.
#
# Test coverage includes:
#   - Every statement kind and its opcode bytes
#   - The move family across all operand shapes
#   - Rejected operand combinations and constant ranges
#   - Label resolution and the marker alias
#   - Pretty-printed mnemonic text
# =============================================================================

import pytest

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
from asm80.assembler.encoder import EncodedInstruction, Encoder, encode_statement
from asm80.assembler.symbols import SymbolTable
from asm80.cpu import (
    ArithmeticType,
    InherentOp,
    JumpType,
    Register,
    RegisterPair,
    ReturnType,
)
from asm80.errors import (
    ConstantRangeError,
    EncodingError,
    SourceLocation,
    UnresolvedLabelError,
)


def encode(kind, symbols=None) -> EncodedInstruction:
    """Encode one statement kind with an (optionally pre-filled) symbol table."""
    return Encoder(symbols or SymbolTable()).encode(Statement(kind))


def move(dst, src) -> Move:
    return Move(dst, src)


R = RegisterOperand
P = PairOperand
A, B, C, D, E, H, L, M = (
    Register.A, Register.B, Register.C, Register.D,
    Register.E, Register.H, Register.L, Register.M,
)
BC, DE, HL, SP = RegisterPair.BC, RegisterPair.DE, RegisterPair.HL, RegisterPair.SP


# =============================================================================
# Simple Instruction Tests
# =============================================================================

class TestInherent:
    """Test fixed single-byte instructions."""

    @pytest.mark.parametrize("op,code", [
        (InherentOp.NOP, 0x00), (InherentOp.RLC, 0x07), (InherentOp.RRC, 0x0F),
        (InherentOp.RAL, 0x17), (InherentOp.RAR, 0x1F), (InherentOp.STC, 0x37),
        (InherentOp.CMC, 0x3F), (InherentOp.DAA, 0x27), (InherentOp.HLT, 0x76),
        (InherentOp.PCHL, 0xE9), (InherentOp.DI, 0xF3), (InherentOp.EI, 0xFB),
    ])
    def test_single_byte(self, op, code):
        result = encode(Inherent(op))
        assert result.data == bytes([code])
        assert result.text == op.mnemonic


class TestPortIO:
    """Test IN and OUT."""

    def test_in(self):
        result = encode(In(0x10))
        assert result.data == bytes([0xDB, 0x10])
        assert result.text == "in 16"

    def test_out(self):
        result = encode(Out(255))
        assert result.data == bytes([0xD3, 0xFF])
        assert result.text == "out 255"

    @pytest.mark.parametrize("kind", [In(256), Out(256), Out(0xFFFF)])
    def test_port_must_fit_in_a_byte(self, kind):
        with pytest.raises(ConstantRangeError) as exc_info:
            encode(kind)
        assert exc_info.value.bits == 8


class TestJumps:
    """Test jumps, calls and label resolution."""

    def test_jump_resolves_little_endian(self):
        symbols = SymbolTable()
        symbols.define("L", 0x8201)
        result = encode(Jump("L", JumpType.JMP), symbols)
        assert result.data == bytes([0xC3, 0x01, 0x82])
        assert result.text == "jmp L"

    def test_marker_alias(self):
        symbols = SymbolTable()
        symbols.define("loop", 0x8200)
        result = encode(Jump(".loop", JumpType.JNZ), symbols)
        assert result.data == bytes([0xC2, 0x00, 0x82])
        assert result.text == "jnz loop"

    @pytest.mark.parametrize("jump_type", list(JumpType))
    def test_every_jump_type(self, jump_type):
        symbols = SymbolTable()
        symbols.define("T", 0x1234)
        result = encode(Jump("T", jump_type), symbols)
        assert result.data == bytes([jump_type.code, 0x34, 0x12])

    def test_unresolved_label_is_fatal(self):
        with pytest.raises(UnresolvedLabelError):
            encode(Jump("nowhere"))

    def test_unresolved_label_is_not_recoverable(self):
        """encode_statement lets the fatal error through."""
        with pytest.raises(UnresolvedLabelError):
            encode_statement(Statement(Jump("nowhere")), SymbolTable())

    @pytest.mark.parametrize("return_type", list(ReturnType))
    def test_returns(self, return_type):
        result = encode(Return(return_type))
        assert result.data == bytes([return_type.code])
        assert result.text == return_type.mnemonic


class TestStack:
    """Test PUSH and POP."""

    @pytest.mark.parametrize("pair,push,pop", [
        (BC, 0xC5, 0xC1), (DE, 0xD5, 0xD1), (HL, 0xE5, 0xE1),
    ])
    def test_push_pop(self, pair, push, pop):
        assert encode(Push(pair)).data == bytes([push])
        assert encode(Pop(pair)).data == bytes([pop])

    def test_psw(self):
        assert encode(PushPsw()).data == bytes([0xF5])
        assert encode(PopPsw()).data == bytes([0xF1])
        assert encode(PushPsw()).text == "push psw"

    @pytest.mark.parametrize("kind", [Push(SP), Pop(SP)])
    def test_sp_rejected(self, kind):
        with pytest.raises(EncodingError):
            encode(kind)
        assert encode_statement(Statement(kind), SymbolTable()) is None

    def test_text(self):
        assert encode(Push(DE)).text == "push d"


# =============================================================================
# Arithmetic Tests
# =============================================================================

class TestArithmetic:
    """Test accumulator arithmetic and logic."""

    @pytest.mark.parametrize("kind,base", [
        (ArithmeticType.ADD, 0x80), (ArithmeticType.ADC, 0x88),
        (ArithmeticType.SUB, 0x90), (ArithmeticType.SBB, 0x98),
        (ArithmeticType.AND, 0xA0), (ArithmeticType.XOR, 0xA8),
        (ArithmeticType.OR, 0xB0), (ArithmeticType.CMP, 0xB8),
    ])
    def test_register_form(self, kind, base):
        assert encode(Arithmetic(B, kind)).data == bytes([base])
        assert encode(Arithmetic(M, kind)).data == bytes([base + 6])
        assert encode(Arithmetic(A, kind)).data == bytes([base + 7])

    @pytest.mark.parametrize("kind,code", [
        (ArithmeticType.ADD, 0xC6), (ArithmeticType.ADC, 0xCE),
        (ArithmeticType.SUB, 0xD6), (ArithmeticType.SBB, 0xDE),
        (ArithmeticType.AND, 0xE6), (ArithmeticType.XOR, 0xEE),
        (ArithmeticType.OR, 0xF6), (ArithmeticType.CMP, 0xFE),
    ])
    def test_immediate_form(self, kind, code):
        assert encode(ArithmeticConstant(0x5A, kind)).data == bytes([code, 0x5A])

    def test_text(self):
        assert encode(Arithmetic(C, ArithmeticType.XOR)).text == "xra c"
        assert encode(ArithmeticConstant(0x0F, ArithmeticType.AND)).text == "ani 0F"

    def test_immediate_range(self):
        with pytest.raises(ConstantRangeError):
            encode(ArithmeticConstant(256, ArithmeticType.ADD))


class TestIncrementDecrement:
    """Test INR/DCR and INX/DCX/DAD."""

    @pytest.mark.parametrize("register,inr,dcr", [
        (B, 0x04, 0x05), (C, 0x0C, 0x0D), (D, 0x14, 0x15), (E, 0x1C, 0x1D),
        (H, 0x24, 0x25), (L, 0x2C, 0x2D), (M, 0x34, 0x35), (A, 0x3C, 0x3D),
    ])
    def test_register(self, register, inr, dcr):
        assert encode(Increment(register)).data == bytes([inr])
        assert encode(Decrement(register)).data == bytes([dcr])

    @pytest.mark.parametrize("pair,inx,dcx,dad", [
        (BC, 0x03, 0x0B, 0x09), (DE, 0x13, 0x1B, 0x19),
        (HL, 0x23, 0x2B, 0x29), (SP, 0x33, 0x3B, 0x39),
    ])
    def test_pair(self, pair, inx, dcx, dad):
        assert encode(IncrementPair(pair)).data == bytes([inx])
        assert encode(DecrementPair(pair)).data == bytes([dcx])
        assert encode(AddPair(pair)).data == bytes([dad])

    def test_text(self):
        assert encode(Increment(A)).text == "inr a"
        assert encode(DecrementPair(SP)).text == "dcx sp"
        assert encode(AddPair(HL)).text == "dad h"


class TestRestartAndNegate:
    """Test RST and NEG."""

    @pytest.mark.parametrize("vector", [0, 8, 16, 24, 32, 40, 48, 56])
    def test_valid_vectors(self, vector):
        assert encode(Restart(vector)).data == bytes([0xC7 + vector])

    @pytest.mark.parametrize("vector", [v for v in range(256) if v not in range(0, 57, 8)])
    def test_other_vectors_rejected(self, vector):
        with pytest.raises(EncodingError):
            encode(Restart(vector))

    def test_negate_a(self):
        result = encode(Negate(A))
        assert result.data == bytes([0x2F])
        assert result.text == "cma"

    def test_negate_c_emits_cmc(self):
        result = encode(Negate(C))
        assert result.data == bytes([0x3F])
        assert result.text == "cmc"

    @pytest.mark.parametrize("register", [B, D, E, H, L, M])
    def test_negate_other_registers_rejected(self, register):
        with pytest.raises(EncodingError):
            encode(Negate(register))


# =============================================================================
# Move Family Tests
# =============================================================================

class TestMoveRegister:
    """Test moves into an 8-bit register."""

    @pytest.mark.parametrize("register", [A, B, C, D, E, H, L])
    def test_move_to_self(self, register):
        result = encode(move(R(register), R(register)))
        assert result.data == bytes([register.mov_base + register.select])

    def test_move_m_to_m_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(R(M), R(M)))

    def test_mov_text(self):
        result = encode(move(R(A), R(B)))
        assert result.data == bytes([0x78])
        assert result.text == "mov a, b"

    def test_mov_through_memory(self):
        assert encode(move(R(M), R(A))).data == bytes([0x77])
        assert encode(move(R(A), R(M))).data == bytes([0x7E])

    @pytest.mark.parametrize("register", [A, B, C, D, E, H, L, M])
    @pytest.mark.parametrize("value", [0, 0x41, 255])
    def test_mvi(self, register, value):
        result = encode(move(R(register), Constant(value)))
        assert len(result.data) == 2
        assert result.data[0] == register.row_opcode(0x06, 0x0E)
        assert result.data[1] == value

    @pytest.mark.parametrize("value", [256, 0x1234, 65535])
    def test_mvi_rejects_wide_constants(self, value):
        with pytest.raises(ConstantRangeError):
            encode(move(R(B), Constant(value)))

    def test_mvi_text(self):
        assert encode(move(R(A), Constant(0x41))).text == "mvi a, 41"

    def test_lda(self):
        result = encode(move(R(A), DirectMemory(0x1234)))
        assert result.data == bytes([0x3A, 0x34, 0x12])
        assert result.text == "lda 1234"

    def test_lda_needs_accumulator(self):
        with pytest.raises(EncodingError):
            encode(move(R(B), DirectMemory(0x1234)))

    @pytest.mark.parametrize("pair,code", [(BC, 0x0A), (DE, 0x1A)])
    def test_ldax(self, pair, code):
        result = encode(move(R(A), IndirectMemory(pair)))
        assert result.data == bytes([code])

    @pytest.mark.parametrize("pair", [HL, SP])
    def test_ldax_other_pairs_rejected(self, pair):
        with pytest.raises(EncodingError):
            encode(move(R(A), IndirectMemory(pair)))

    def test_ldax_needs_accumulator(self):
        with pytest.raises(EncodingError):
            encode(move(R(B), IndirectMemory(BC)))

    def test_pair_into_register_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(R(A), P(HL)))


class TestMovePair:
    """Test moves into a register pair."""

    @pytest.mark.parametrize("pair,code", [(BC, 0x01), (DE, 0x11), (HL, 0x21), (SP, 0x31)])
    def test_lxi(self, pair, code):
        result = encode(move(P(pair), Constant(0x1234)))
        assert result.data == bytes([code, 0x34, 0x12])

    def test_lxi_text(self):
        assert encode(move(P(HL), Constant(0x1234))).text == "lxi h, 1234"

    def test_lxi_rejects_over_16_bits(self):
        with pytest.raises(ConstantRangeError) as exc_info:
            encode(move(P(HL), Constant(0x10000)))
        assert exc_info.value.bits == 16

    def test_sphl(self):
        assert encode(move(P(SP), P(HL))).data == bytes([0xF9])

    def test_xchg_both_directions(self):
        assert encode(move(P(DE), P(HL))).data == bytes([0xEB])
        assert encode(move(P(HL), P(DE))).data == bytes([0xEB])

    @pytest.mark.parametrize("dst,src", [(HL, SP), (BC, DE), (BC, HL), (SP, DE), (HL, HL)])
    def test_other_pair_moves_rejected(self, dst, src):
        with pytest.raises(EncodingError):
            encode(move(P(dst), P(src)))

    def test_lhld(self):
        result = encode(move(P(HL), DirectMemory(0xBEEF)))
        assert result.data == bytes([0x2A, 0xEF, 0xBE])
        assert result.text == "lhld BEEF"

    def test_lhld_other_pairs_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(P(DE), DirectMemory(0x1234)))

    def test_xthl(self):
        assert encode(move(P(HL), IndirectMemory(SP))).data == bytes([0xE3])

    def test_other_indirect_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(P(HL), IndirectMemory(BC)))

    def test_register_into_pair_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(P(HL), R(A)))


class TestMoveMemory:
    """Test moves into direct and indirect memory."""

    def test_sta(self):
        result = encode(move(DirectMemory(0x8000), R(A)))
        assert result.data == bytes([0x32, 0x00, 0x80])
        assert result.text == "sta 8000"

    def test_sta_needs_accumulator(self):
        with pytest.raises(EncodingError):
            encode(move(DirectMemory(0x8000), R(B)))

    def test_shld(self):
        assert encode(move(DirectMemory(0x8000), P(HL))).data == bytes([0x22, 0x00, 0x80])

    def test_shld_other_pairs_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(DirectMemory(0x8000), P(BC)))

    @pytest.mark.parametrize("src", [Constant(1), DirectMemory(1), IndirectMemory(BC)])
    def test_direct_from_non_register_rejected(self, src):
        with pytest.raises(EncodingError):
            encode(move(DirectMemory(0x8000), src))

    @pytest.mark.parametrize("pair,code", [(BC, 0x02), (DE, 0x12)])
    def test_stax(self, pair, code):
        result = encode(move(IndirectMemory(pair), R(A)))
        assert result.data == bytes([code])

    @pytest.mark.parametrize("pair", [HL, SP])
    def test_stax_other_pairs_rejected(self, pair):
        with pytest.raises(EncodingError):
            encode(move(IndirectMemory(pair), R(A)))

    def test_stax_needs_accumulator(self):
        with pytest.raises(EncodingError):
            encode(move(IndirectMemory(BC), R(B)))

    def test_xthl_from_memory_side(self):
        assert encode(move(IndirectMemory(SP), P(HL))).data == bytes([0xE3])

    def test_indirect_from_constant_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(IndirectMemory(BC), Constant(1)))

    def test_move_into_constant_rejected(self):
        with pytest.raises(EncodingError):
            encode(move(Constant(1), R(A)))

    def test_address_over_16_bits_rejected(self):
        with pytest.raises(ConstantRangeError):
            encode(move(R(A), DirectMemory(0x10000)))


# =============================================================================
# Data and Label Setting Tests
# =============================================================================

class TestData:
    """Test DB, DW and LSET."""

    def test_db(self):
        result = encode(DefineByte(0x41))
        assert result.data == bytes([0x41])
        assert result.text == "db 41"

    def test_db_rejects_256(self):
        with pytest.raises(ConstantRangeError):
            encode(DefineByte(256))

    def test_dw_is_big_endian(self):
        result = encode(DefineWord(0x1234))
        assert result.data == bytes([0x12, 0x34])
        assert result.text == "dw 1234"

    def test_dw_range(self):
        with pytest.raises(ConstantRangeError):
            encode(DefineWord(0x10000))

    def test_label_set_never_encodes(self):
        with pytest.raises(EncodingError):
            encode(LabelSet(0x9000))


# =============================================================================
# Error Context Tests
# =============================================================================

class TestErrorContext:
    """Test that rejections carry the statement's location."""

    def test_location_in_message(self):
        stmt = Statement(
            Push(SP),
            location=SourceLocation("prog.asm", 3, 5),
            source_line="    push sp",
        )
        with pytest.raises(EncodingError) as exc_info:
            Encoder(SymbolTable()).encode(stmt)
        assert exc_info.value.location == SourceLocation("prog.asm", 3, 5)
        assert str(exc_info.value).startswith("prog.asm:3:5: error:")
        assert exc_info.value.mnemonic == "push"

    def test_encode_statement_returns_encoding(self):
        result = encode_statement(Statement(Inherent(InherentOp.NOP)), SymbolTable())
        assert result == EncodedInstruction(b"\x00", "nop")

    def test_encode_statement_logs_rejection(self, caplog):
        assert encode_statement(Statement(DefineByte(300)), SymbolTable()) is None
        assert "does not fit in 8 bits" in caplog.text
