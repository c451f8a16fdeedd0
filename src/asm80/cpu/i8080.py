"""
Intel 8080 Operand and Opcode Model
===================================

This module defines the registers, register pairs and instruction families
of the Intel 8080 together with the constant data needed to compute each
opcode byte. Every lookup is pure: given an operand it returns a number.

The 8080 stores 16-bit values little-endian (low byte first).

Opcode Layout
-------------
Most single-register opcodes live in a 4x16 grid indexed by a *block
offset* (the high nibble: $00, $10, $20, $30) and a *row parity* (whether
the register sits in the low or high half of its block):

| Block | Up (+$x4/$x5/$x6) | Down (+$xC/$xD/$xE) |
|-------|-------------------|---------------------|
| $00   | B                 | C                   |
| $10   | D                 | E                   |
| $20   | H                 | L                   |
| $30   | M                 | A                   |

So `INR C` = $00 + $0C = $0C and `MVI M,n` = $30 + $06 = $36.

Register-to-register forms use the 3-bit *select code* instead:
`MOV dst,src` = $40 + 8*select(dst) + select(src).

Register pairs use the same block offsets ($00 BC, $10 DE, $20 HL, $30 SP):
`LXI rp,nn` = $01 + block, `INX` = $03 + block, `DAD` = $09 + block,
`DCX` = $0B + block.

Reference
---------
- Intel 8080 Microcomputer Systems User's Manual (1975), chapter 4
"""

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Registers
# =============================================================================

class Register(Enum):
    """
    8-bit register operands.

    M is the pseudo-register "memory at the address held in HL".
    """
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    H = "h"
    L = "l"
    M = "m"
    A = "a"

    def __str__(self) -> str:
        return self.value

    @property
    def select(self) -> int:
        """3-bit select code used by MOV and register arithmetic."""
        return _REGISTER_SELECT[self]

    @property
    def mov_base(self) -> int:
        """Opcode of MOV <self>,B; add the source select code to it."""
        return 0x40 + (self.select << 3)

    @property
    def block_offset(self) -> int:
        """High-nibble block of the INR/DCR/MVI grid."""
        return _REGISTER_BLOCK[self]

    @property
    def is_down(self) -> bool:
        """True if the register sits in the $x8-$xF half of its block."""
        return self in _DOWN_REGISTERS

    def row_opcode(self, up_code: int, down_code: int) -> int:
        """Pick an opcode from the shared INR/DCR/MVI grid."""
        return self.block_offset + (down_code if self.is_down else up_code)


_REGISTER_SELECT: dict[Register, int] = {
    Register.B: 0,
    Register.C: 1,
    Register.D: 2,
    Register.E: 3,
    Register.H: 4,
    Register.L: 5,
    Register.M: 6,
    Register.A: 7,
}

_REGISTER_BLOCK: dict[Register, int] = {
    Register.B: 0x00,
    Register.C: 0x00,
    Register.D: 0x10,
    Register.E: 0x10,
    Register.H: 0x20,
    Register.L: 0x20,
    Register.M: 0x30,
    Register.A: 0x30,
}

_DOWN_REGISTERS = frozenset({Register.C, Register.E, Register.L, Register.A})


# =============================================================================
# Register Pairs
# =============================================================================

class RegisterPair(Enum):
    """
    16-bit register pair operands.

    The value is the name the 8080 mnemonics use for the pair (BC is
    written "b", DE "d", HL "h").
    """
    BC = "b"
    DE = "d"
    HL = "h"
    SP = "sp"

    def __str__(self) -> str:
        return self.value

    @property
    def block_offset(self) -> int:
        """High-nibble block of the LXI/INX/DAD/DCX column."""
        return _PAIR_BLOCK[self]

    @property
    def can_push(self) -> bool:
        return self in _PUSH_CODES

    @property
    def push_code(self) -> int:
        """
        Opcode of PUSH for this pair.

        Raises:
            ValueError: for SP, which has no PUSH form
        """
        try:
            return _PUSH_CODES[self]
        except KeyError:
            raise ValueError(f"register pair {self.name} cannot be pushed") from None

    @property
    def pop_code(self) -> int:
        """
        Opcode of POP for this pair.

        Raises:
            ValueError: for SP, which has no POP form
        """
        try:
            return _POP_CODES[self]
        except KeyError:
            raise ValueError(f"register pair {self.name} cannot be popped") from None


_PAIR_BLOCK: dict[RegisterPair, int] = {
    RegisterPair.BC: 0x00,
    RegisterPair.DE: 0x10,
    RegisterPair.HL: 0x20,
    RegisterPair.SP: 0x30,
}

_PUSH_CODES: dict[RegisterPair, int] = {
    RegisterPair.BC: 0xC5,
    RegisterPair.DE: 0xD5,
    RegisterPair.HL: 0xE5,
}

_POP_CODES: dict[RegisterPair, int] = {
    RegisterPair.BC: 0xC1,
    RegisterPair.DE: 0xD1,
    RegisterPair.HL: 0xE1,
}


# =============================================================================
# Instruction Families
# =============================================================================

@dataclass(frozen=True)
class Opcode:
    """
    A fixed opcode byte with its mnemonic.

    Attributes:
        code: The opcode byte
        mnemonic: Lower-case mnemonic text
    """
    code: int
    mnemonic: str

    def __repr__(self) -> str:
        return f"Opcode(${self.code:02X}, {self.mnemonic!r})"


class JumpType(Enum):
    """Jumps and calls, unconditional and condition-coded (3 bytes each)."""
    JMP = Opcode(0xC3, "jmp")
    JNZ = Opcode(0xC2, "jnz")
    JZ = Opcode(0xCA, "jz")
    JNC = Opcode(0xD2, "jnc")
    JC = Opcode(0xDA, "jc")
    JPO = Opcode(0xE2, "jpo")
    JPE = Opcode(0xEA, "jpe")
    JP = Opcode(0xF2, "jp")
    JM = Opcode(0xFA, "jm")
    CALL = Opcode(0xCD, "call")
    CNZ = Opcode(0xC4, "cnz")
    CZ = Opcode(0xCC, "cz")
    CNC = Opcode(0xD4, "cnc")
    CC = Opcode(0xDC, "cc")
    CPO = Opcode(0xE4, "cpo")
    CPE = Opcode(0xEC, "cpe")
    CP = Opcode(0xF4, "cp")
    CM = Opcode(0xFC, "cm")

    @property
    def code(self) -> int:
        return self.value.code

    @property
    def mnemonic(self) -> str:
        return self.value.mnemonic


class ReturnType(Enum):
    """Unconditional and condition-coded returns (1 byte each)."""
    RET = Opcode(0xC9, "ret")
    RNZ = Opcode(0xC0, "rnz")
    RZ = Opcode(0xC8, "rz")
    RNC = Opcode(0xD0, "rnc")
    RC = Opcode(0xD8, "rc")
    RPO = Opcode(0xE0, "rpo")
    RPE = Opcode(0xE8, "rpe")
    RP = Opcode(0xF0, "rp")
    RM = Opcode(0xF8, "rm")

    @property
    def code(self) -> int:
        return self.value.code

    @property
    def mnemonic(self) -> str:
        return self.value.mnemonic


@dataclass(frozen=True)
class ArithmeticInfo:
    """
    Encoding data for one accumulator arithmetic/logic family.

    Attributes:
        register_base: Opcode of the register form with B (add select code)
        immediate_code: Opcode of the immediate form (followed by one byte)
        register_mnemonic: Mnemonic of the register form
        immediate_mnemonic: Mnemonic of the immediate form
    """
    register_base: int
    immediate_code: int
    register_mnemonic: str
    immediate_mnemonic: str


class ArithmeticType(Enum):
    """Accumulator arithmetic and logic families."""
    ADD = ArithmeticInfo(0x80, 0xC6, "add", "adi")
    ADC = ArithmeticInfo(0x88, 0xCE, "adc", "aci")
    SUB = ArithmeticInfo(0x90, 0xD6, "sub", "sui")
    SBB = ArithmeticInfo(0x98, 0xDE, "sbb", "sbi")
    AND = ArithmeticInfo(0xA0, 0xE6, "ana", "ani")
    XOR = ArithmeticInfo(0xA8, 0xEE, "xra", "xri")
    OR = ArithmeticInfo(0xB0, 0xF6, "ora", "ori")
    CMP = ArithmeticInfo(0xB8, 0xFE, "cmp", "cpi")

    @property
    def register_base(self) -> int:
        return self.value.register_base

    @property
    def immediate_code(self) -> int:
        return self.value.immediate_code

    @property
    def register_mnemonic(self) -> str:
        return self.value.register_mnemonic

    @property
    def immediate_mnemonic(self) -> str:
        return self.value.immediate_mnemonic


class InherentOp(Enum):
    """Single-byte instructions without operands."""
    NOP = Opcode(0x00, "nop")
    RLC = Opcode(0x07, "rlc")
    RRC = Opcode(0x0F, "rrc")
    RAL = Opcode(0x17, "ral")
    RAR = Opcode(0x1F, "rar")
    DAA = Opcode(0x27, "daa")
    STC = Opcode(0x37, "stc")
    CMC = Opcode(0x3F, "cmc")
    HLT = Opcode(0x76, "hlt")
    PCHL = Opcode(0xE9, "pchl")
    DI = Opcode(0xF3, "di")
    EI = Opcode(0xFB, "ei")

    @property
    def code(self) -> int:
        return self.value.code

    @property
    def mnemonic(self) -> str:
        return self.value.mnemonic


# =============================================================================
# Fixed Opcodes
# =============================================================================
# Fixed bytes used by the move family and the stack, I/O and complement
# arms of the encoder.
# =============================================================================

CMA = Opcode(0x2F, "cma")
CMC = InherentOp.CMC.value
XTHL = Opcode(0xE3, "xthl")
XCHG = Opcode(0xEB, "xchg")
SPHL = Opcode(0xF9, "sphl")

OUT = Opcode(0xD3, "out")
IN = Opcode(0xDB, "in")

PUSH_PSW = Opcode(0xF5, "push")
POP_PSW = Opcode(0xF1, "pop")

SHLD = Opcode(0x22, "shld")
LHLD = Opcode(0x2A, "lhld")
STA = Opcode(0x32, "sta")
LDA = Opcode(0x3A, "lda")

# Column bases, to be added to a block offset
LXI_BASE = 0x01
INX_BASE = 0x03
DAD_BASE = 0x09
DCX_BASE = 0x0B

# (up, down) rows of the register grid
INR_ROW = (0x04, 0x0C)
DCR_ROW = (0x05, 0x0D)
MVI_ROW = (0x06, 0x0E)

# LDAX/STAX exist only for BC and DE
LDAX_CODES: dict[RegisterPair, int] = {
    RegisterPair.BC: 0x0A,
    RegisterPair.DE: 0x1A,
}

STAX_CODES: dict[RegisterPair, int] = {
    RegisterPair.BC: 0x02,
    RegisterPair.DE: 0x12,
}

# RST n is $C7 + n for the eight vectors n = 0, 8, ..., 56
RST_BASE = 0xC7
RST_VECTORS = frozenset(range(0, 64, 8))


# =============================================================================
# Lookup Functions
# =============================================================================

def rst_opcode(vector: int) -> int:
    """
    Opcode of RST for a restart vector address.

    Raises:
        ValueError: if vector is not one of 0, 8, 16, ..., 56
    """
    if vector not in RST_VECTORS:
        raise ValueError(f"RST vector {vector} is not a multiple of 8 in 0..56")
    return RST_BASE + vector


def mov_opcode(dst: Register, src: Register) -> int:
    """Opcode of MOV dst,src (no check for the illegal MOV M,M slot)."""
    return dst.mov_base + src.select


PAIR_NAMES: dict[str, RegisterPair] = {
    "bc": RegisterPair.BC,
    "b": RegisterPair.BC,
    "de": RegisterPair.DE,
    "d": RegisterPair.DE,
    "hl": RegisterPair.HL,
    "h": RegisterPair.HL,
    "sp": RegisterPair.SP,
}
