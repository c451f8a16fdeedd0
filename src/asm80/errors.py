"""
asm80 Error Hierarchy
=====================

This module defines the exception hierarchy for the 8080 assembler.
All exceptions inherit from Asm80Error, allowing callers to catch all
assembler-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
Asm80Error (base)
└── AssemblerError (assembler-related)
    ├── AssemblySyntaxError - syntax errors in source
    ├── UndefinedSymbolError - reference to an unknown symbol
    │   └── UnresolvedLabelError - label not defined at point of use (fatal)
    └── EncodingError - operand shape has no hardware encoding (recoverable)
        └── ConstantRangeError - constant too wide for its slot

Two Tiers
---------
EncodingError and its subclasses are *recoverable*: the offending statement
contributes no bytes and assembly continues. Everything else aborts the run.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Asm80Error(Exception):
    """
    Base exception for all asm80 errors.

        try:
            Assembler().assemble_file("program.asm")
        except Asm80Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Asm80Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.asm:4:9: error: unresolved label 'lop'
                jmp lop
                    ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised by the lexer or parser. Examples:
        - Invalid character in source
        - Unknown mnemonic
        - Wrong operand count
        - Number too wide for a 16-bit word
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined symbol.

    The assembler suggests similarly-named symbols when this error
    occurs, helping to catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            self._describe(symbol),
            location=location,
            hint=hint,
            source_line=source_line,
        )

    @staticmethod
    def _describe(symbol: str) -> str:
        return f"undefined symbol '{symbol}'"


class UnresolvedLabelError(UndefinedSymbolError):
    """
    Label not defined at the point of use.

    Labels become visible only once their defining statement has been
    scanned, so this covers both genuinely undefined labels and forward
    references. It aborts the whole assembly run.
    """

    @staticmethod
    def _describe(symbol: str) -> str:
        return f"unresolved label '{symbol}'"


class EncodingError(AssemblerError):
    """
    Operand combination with no 8080 encoding.

    Recoverable: the statement is dropped from the output and assembly
    continues with the next statement.

    Example:
        mov m, m    ; Error: memory-to-memory move does not exist
        push sp     ; Error: SP cannot be pushed
    """

    def __init__(
        self,
        message: str,
        mnemonic: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(message, location=location, hint=hint, source_line=source_line)


class ConstantRangeError(EncodingError):
    """
    Constant does not fit the instruction slot.

    8-bit slots (MVI, immediate arithmetic, DB, port numbers) accept
    0..255; 16-bit slots accept 0..65535.
    """

    def __init__(
        self,
        value: int,
        bits: int,
        mnemonic: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.value = value
        self.bits = bits
        limit = (1 << bits) - 1
        super().__init__(
            f"constant {value} does not fit in {bits} bits",
            mnemonic=mnemonic,
            location=location,
            hint=f"value must be between 0 and {limit} (${limit:X})",
            source_line=source_line,
        )


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects recoverable errors and warnings for batch reporting.

    The assembler uses this to continue after an encoding failure,
    reporting all of them together at the end of the run. There is no
    limit: every dropped statement is recorded and assembly goes on.

    Example:
        collector = ErrorCollector()
        collector.add(EncodingError("mov m, m is not encodable"))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self):
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []

    def add(self, error: AssemblerError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """
        Format all errors and warnings for display.

        Returns:
            Formatted string with all errors and warnings
        """
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)
