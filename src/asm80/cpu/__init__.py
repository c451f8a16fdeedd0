"""
asm80 CPU Package
=================

CPU architecture definitions for the Intel 8080, shared by the encoder and
the source reader so both agree on register names and opcode values.

Modules:
    i8080: Registers, register pairs, instruction families and the fixed
           opcode table.

Usage:
    from asm80.cpu import Register, RegisterPair, JumpType
"""

from asm80.cpu.i8080 import (
    # Operand types
    Register,
    RegisterPair,
    PAIR_NAMES,
    # Instruction families
    Opcode,
    InherentOp,
    JumpType,
    ReturnType,
    ArithmeticInfo,
    ArithmeticType,
    # Restart vectors
    RST_VECTORS,
    # Lookup functions
    rst_opcode,
    mov_opcode,
)

__all__ = [
    "Register",
    "RegisterPair",
    "PAIR_NAMES",
    "Opcode",
    "InherentOp",
    "JumpType",
    "ReturnType",
    "ArithmeticInfo",
    "ArithmeticType",
    "RST_VECTORS",
    "rst_opcode",
    "mov_opcode",
]
