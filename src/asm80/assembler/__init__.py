"""
8080 Assembler
==============

This package turns 8080 assembly statements into machine code, in a single
forward pass starting at a fixed base address ($8200 by default).

Main Components
---------------
- **Assembler**: Runs the pass and collects the CompiledProgram
- **Encoder**: Encodes one statement into bytes and mnemonic text
- **SymbolTable**: Label name to address map
- **Lexer** / **Parser**: Read assembly text into a Program
- **ast**: The statement model the encoder consumes

Assembly Process
----------------
For each statement, in order:

1. ``label: lset n`` binds the label to n and emits nothing.
2. Otherwise the statement's label is bound to the current address.
3. The statement is encoded. Jumps may only target labels already bound.
4. The bytes are appended and the address advances by their length.

Statements that cannot be encoded are dropped and reported; a jump to an
unknown label stops the run.

Example Usage
-------------
>>> from asm80.assembler import Assembler
>>> result = Assembler().assemble_string('''
... start:
...     mvi a, 'A'
...     out 1
...     jmp start
... ''')
>>> print(result.table_text())
ADDRES;CODE;ASM
8200;3E 41;start;MVI A, 41
8202;D3 01;;OUT 1
8204;C3 00 82;;JMP START
<BLANKLINE>
"""

from asm80.assembler.assembler import (
    Assembler,
    CompiledProgram,
    TableRow,
    DEFAULT_BASE_ADDRESS,
    assemble,
    assemble_file,
)
from asm80.assembler.encoder import Encoder, EncodedInstruction, encode_statement
from asm80.assembler.symbols import SymbolTable, normalize_label
from asm80.assembler.lexer import Lexer, Token, TokenType
from asm80.assembler.parser import Parser, parse_source
from asm80.assembler.ast import Program, Statement

__all__ = [
    # Main class and functions
    "Assembler",
    "CompiledProgram",
    "TableRow",
    "DEFAULT_BASE_ADDRESS",
    "assemble",
    "assemble_file",
    # Encoder
    "Encoder",
    "EncodedInstruction",
    "encode_statement",
    # Symbols
    "SymbolTable",
    "normalize_label",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "parse_source",
    # Statement model
    "Program",
    "Statement",
]
