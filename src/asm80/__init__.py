"""
asm80 - Intel 8080 Assembler
============================

This package assembles Intel 8080 programs into a flat binary image plus a
human-readable address table.

Main Components
---------------
- **cpu**: Registers, register pairs and the 8080 opcode model
- **assembler**: Statement model, encoder, symbol table, driver and source
  reader
- **errors**: Exception hierarchy and diagnostic collection
- **cli**: The ``asm80`` command-line tool

Quick Start
-----------
Assemble a file:
    >>> from asm80.assembler import Assembler
    >>> result = Assembler().assemble_file("prog.asm")
    >>> result.write_binary("prog.bin")
    >>> result.write_table("prog_table.csv")

Or from the command line:
    $ asm80 prog.asm --table

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
