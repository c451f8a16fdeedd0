"""
8080 Assembler - Main Interface
===============================

This module provides the Assembler class, which runs the single forward
pass over a program: it keeps the code-location counter, defines labels as
their statements are reached, hands each statement to the encoder and
collects the bytes, pretty-printed text and table rows of the result.

Example Usage
-------------
>>> from asm80.assembler import Assembler
>>>
>>> asm = Assembler()
>>> result = asm.assemble_string('''
...     nop
... L:  hlt
...     jmp L
... ''')
>>> result.data.hex(" ")
'00 76 c3 01 82'
>>> result.write_binary("prog.bin")
>>> result.write_table("prog_table.csv")

Label Visibility
----------------
A label becomes visible when its statement is reached, *before* that
statement is encoded. A jump can therefore target its own statement or any
earlier one, but never a later one: forward references abort the run with
UnresolvedLabelError.

Output Files
------------
- Binary image: ``base_address`` zero bytes followed by the code, so that
  the file offset of each byte equals its load address.
- Table: ``ADDRES;CODE;ASM`` header, then one ``address;bytes;label;text``
  row per emitted instruction.
"""

from dataclasses import dataclass, field
from pathlib import Path
import logging

from asm80.assembler.ast import LabelSet, Program, Statement
from asm80.assembler.encoder import Encoder
from asm80.assembler.parser import parse_source
from asm80.assembler.symbols import SymbolTable
from asm80.errors import AssemblerError, ConstantRangeError, EncodingError, ErrorCollector

logger = logging.getLogger(__name__)

# Load address of the first emitted byte
DEFAULT_BASE_ADDRESS = 0x8200

# One past the last address of the 16-bit address space
ADDRESS_LIMIT = 0x10000

TABLE_HEADER = "ADDRES;CODE;ASM"


# =============================================================================
# Assembly Result
# =============================================================================

@dataclass(frozen=True)
class TableRow:
    """
    One row of the address table.

    Attributes:
        address: Load address of the first byte
        data: Emitted bytes
        label: Label defined by the statement, or empty
        text: Upper-case pretty-printed instruction
    """
    address: int
    data: bytes
    label: str
    text: str

    def __str__(self) -> str:
        code = " ".join(f"{b:02X}" for b in self.data)
        return f"{self.address:04X};{code};{self.label};{self.text}"


@dataclass
class CompiledProgram:
    """
    Everything produced by one assembly run.

    The three accumulators (data, pretty_instructions, table) are filled in
    instruction order and never rewritten.
    """
    data: bytes = b""
    pretty_instructions: list[str] = field(default_factory=list)
    table: list[TableRow] = field(default_factory=list)
    base_address: int = DEFAULT_BASE_ADDRESS
    symbols: dict[str, int] = field(default_factory=dict)
    errors: ErrorCollector = field(default_factory=ErrorCollector)

    @property
    def end_address(self) -> int:
        """Address just past the last emitted byte."""
        return self.base_address + len(self.data)

    @property
    def diagnostics(self) -> list[AssemblerError]:
        """Errors of the statements that were dropped."""
        return self.errors.errors

    @property
    def warnings(self) -> list[str]:
        return self.errors.warnings

    def has_errors(self) -> bool:
        """True if any statement was dropped because it could not be encoded."""
        return self.errors.has_errors()

    def report(self) -> str:
        """Formatted diagnostics, as printed by the command-line tool."""
        return self.errors.report()

    def image(self) -> bytes:
        """Flat memory image from address 0: zero padding, then the code."""
        return bytes(self.base_address) + self.data

    def table_text(self) -> str:
        lines = [TABLE_HEADER]
        lines.extend(str(row) for row in self.table)
        return "\n".join(lines) + "\n"

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write the flat binary image.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_bytes(self.image())
        logger.info(f"Wrote {len(self.data)} bytes of code to {filepath}")

    def write_table(self, filepath: str | Path) -> None:
        """
        Write the address table.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(self.table_text())
        logger.info(f"Wrote table to {filepath}")


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Main 8080 assembler class.

    Each call to ``assemble`` starts from a fresh symbol table and counter,
    so one instance can assemble any number of programs.

    Attributes:
        base_address: Address of the first emitted byte
        verbose: If True, log progress at INFO level instead of DEBUG
    """

    def __init__(self, base_address: int = DEFAULT_BASE_ADDRESS, verbose: bool = False):
        if not 0 <= base_address < ADDRESS_LIMIT:
            raise ValueError(f"base address ${base_address:X} is outside the 16-bit address space")
        self.base_address = base_address
        self.verbose = verbose

    def _progress(self, message: str) -> None:
        if self.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, program: Program) -> CompiledProgram:
        """
        Assemble a parsed program.

        Statements that cannot be encoded are dropped and reported in the
        result's diagnostics; the rest of the program is still assembled.

        Args:
            program: Statements in source order

        Returns:
            The compiled program

        Raises:
            UnresolvedLabelError: If a jump targets an undefined label
            AssemblerError: If the code runs past address $FFFF
        """
        symbols = SymbolTable()
        encoder = Encoder(symbols)
        errors = ErrorCollector()

        counter = self.base_address
        code = bytearray()
        pretty: list[str] = []
        table: list[TableRow] = []

        for stmt in program:
            if isinstance(stmt.kind, LabelSet):
                self._set_label(stmt, symbols, errors)
                continue

            if stmt.label is not None:
                symbols.define(stmt.label, counter)

            try:
                encoded = encoder.encode(stmt)
            except EncodingError as e:
                logger.debug(f"Dropped statement: {e.message}")
                errors.add(e)
                continue

            end = counter + len(encoded.data)
            if end > ADDRESS_LIMIT:
                raise AssemblerError(
                    f"code runs past the end of memory at ${counter:04X}",
                    location=stmt.location,
                    hint="the 8080 address space ends at $FFFF",
                    source_line=stmt.source_line,
                )

            text = encoded.text.upper()
            code.extend(encoded.data)
            pretty.append(text)
            table.append(TableRow(counter, encoded.data, stmt.label or "", text))
            counter = end

        self._progress(
            f"Assembled {len(pretty)} instructions, {len(code)} bytes "
            f"at ${self.base_address:04X}-${counter:04X}"
        )
        if errors.has_errors() or errors.warning_count():
            self._progress(
                f"{errors.error_count()} statements dropped, {errors.warning_count()} warnings"
            )

        return CompiledProgram(
            data=bytes(code),
            pretty_instructions=pretty,
            table=table,
            base_address=self.base_address,
            symbols=symbols.as_dict(),
            errors=errors,
        )

    def _set_label(self, stmt: Statement, symbols: SymbolTable, errors: ErrorCollector) -> None:
        """Handle ``label: lset address``, which emits nothing."""
        where = f"{stmt.location}: " if stmt.location else ""
        if stmt.label is None:
            message = f"{where}lset without a label is ignored"
            logger.debug(message)
            errors.add_warning(message)
            return

        address = stmt.kind.address
        if not 0 <= address < ADDRESS_LIMIT:
            error = ConstantRangeError(
                address, 16, mnemonic="lset",
                location=stmt.location, source_line=stmt.source_line,
            )
            logger.debug(f"Dropped statement: {error.message}")
            errors.add(error)
            return

        symbols.define(stmt.label, address)

    def assemble_string(self, source: str, filename: str = "<input>") -> CompiledProgram:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The compiled program

        Raises:
            AssemblerError: If parsing or assembly fails
        """
        program = parse_source(source, filename)
        self._progress(f"Parsed {len(program)} statements from {filename}")
        return self.assemble(program)

    def assemble_file(self, filepath: str | Path) -> CompiledProgram:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If parsing or assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._progress(f"Assembling {filepath}...")
        return self.assemble_string(filepath.read_text(), str(filepath))


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>",
             base_address: int = DEFAULT_BASE_ADDRESS) -> CompiledProgram:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(base_address=base_address).assemble_string(source, filename)


def assemble_file(filepath: str | Path,
                  base_address: int = DEFAULT_BASE_ADDRESS) -> CompiledProgram:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(base_address=base_address).assemble_file(filepath)
