"""
asm80 - 8080 Assembler Command-Line Interface
=============================================

This module implements the command-line interface for the 8080 assembler.

Usage Examples
--------------
Basic assembly (writes prog.bin):
    $ asm80 prog.asm

Also write the address table (prog_table.csv):
    $ asm80 prog.asm --table

Choose the binary file name:
    $ asm80 prog.asm -o rom.bin

Verbose mode:
    $ asm80 -v prog.asm

Output Files
------------
The binary is a flat memory image: $8200 zero bytes (the load address of
the code) followed by the assembled code. The table lists one instruction
per row as ``address;bytes;label;instruction`` under an
``ADDRES;CODE;ASM`` header.

Statements that cannot be encoded are reported on stderr and left out of
the output; they do not change the exit status. Syntax errors and jumps
to undefined labels stop the run with exit status 1.
"""

from pathlib import Path
from typing import Optional
import logging

import click

from asm80 import __version__
from asm80.assembler import Assembler
from asm80.cli.errors import handle_cli_exception


def table_path_for(input_file: Path) -> Path:
    """``prog.asm`` -> ``prog_table.csv`` beside the source."""
    return input_file.with_name(f"{input_file.stem}_table.csv")


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-t", "--table",
    is_flag=True,
    help="Also write the address table (input_table.csv)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="asm80")
def main(
    input_file: Path,
    output: Optional[Path],
    table: bool,
    verbose: bool,
) -> None:
    """
    Assemble Intel 8080 source code.

    INPUT_FILE is the assembly source file to assemble.

    \b
    Examples:
        asm80 prog.asm              # Outputs prog.bin
        asm80 prog.asm --table      # Also outputs prog_table.csv
        asm80 prog.asm -o rom.bin   # Specify output file
    """
    setup_logging(verbose)

    output_file = output if output is not None else input_file.with_suffix(".bin")

    try:
        asm = Assembler(verbose=verbose)
        result = asm.assemble_file(input_file)

        # Dropped statements are reported but do not fail the run
        if result.has_errors() or result.warnings:
            click.echo(result.report(), err=True)

        result.write_binary(output_file)
        if verbose:
            click.echo(f"Wrote {len(result.data)} bytes to {output_file}")

        if table:
            table_file = table_path_for(input_file)
            result.write_table(table_file)
            if verbose:
                click.echo(f"Wrote table to {table_file}")

        if verbose:
            click.echo(
                f"Assembly complete: {len(result.data)} bytes at ${result.base_address:04X}"
            )
            click.echo(f"Defined {len(result.symbols)} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
