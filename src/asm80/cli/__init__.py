"""
asm80 Command-Line Interface
============================

- **asm80**: assemble an 8080 source file into a binary image and an
  optional address table

The tool is a Click-based CLI application.
"""

__all__ = ["asm80"]
