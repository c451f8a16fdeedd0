"""
8080 Assembly Language Lexer
============================

This module implements a lexer (tokenizer) for 8080 assembly language.
It converts source text into a stream of tokens that the parser can process.

Token Types
-----------
- IDENTIFIER: Labels, mnemonics, register names (``.name`` included)
- NUMBER: All numeric and character literals
- Delimiters: ``,`` ``:`` ``[`` ``]``
- NEWLINE: End of line
- EOF: End of file

Number Formats
--------------
| Format      | Prefix / suffix | Example          | Value |
|-------------|-----------------|------------------|-------|
| Decimal     | (none)          | 123              | 123   |
| Hexadecimal | $ or 0x         | $7F, 0x7F        | 127   |
| Hexadecimal | trailing h      | 7Fh, 0FFh        | 127   |
| Binary      | % or 0b         | %1010, 0b1010    | 10    |
| Octal       | @ or 0o         | @177, 0o177      | 127   |
| Character   | '               | 'A'              | 65    |

A trailing-h number must start with a decimal digit (``0FFh``, not
``FFh``), otherwise it is read as an identifier.

Comments
--------
A semicolon starts a comment that runs to the end of the line.

Example
-------
>>> from asm80.assembler.lexer import Lexer
>>> for token in Lexer("L: mvi a, 'A' ; load", "example.asm").tokenize():
...     print(token)
Token(IDENTIFIER, 'L', 1:1)
Token(COLON, ':', 1:2)
Token(IDENTIFIER, 'mvi', 1:4)
Token(IDENTIFIER, 'a', 1:8)
Token(COMMA, ',', 1:9)
Token(NUMBER, $41, 1:11)
Token(EOF, 1:21)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from asm80.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for 8080 assembly language."""

    # Structural tokens
    NEWLINE = auto()    # End of line (significant for statement boundaries)
    EOF = auto()        # End of file

    # Values
    IDENTIFIER = auto()  # Labels, mnemonics, registers
    NUMBER = auto()      # Numeric literals (all formats)

    # Delimiters
    COMMA = auto()       # ,
    COLON = auto()       # :
    LBRACKET = auto()    # [ (memory operand)
    RBRACKET = auto()    # ]


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The TokenType classification
        value: The token value (string for identifiers, int for numbers)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, ${self.value:X}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes 8080 assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier ('.' marks a label reference)
    IDENT_START = string.ascii_letters + "_."

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    SINGLE_CHAR_TOKENS = {
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
    }

    # Escape sequences in character literals
    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
        "\\": "\\",
        "'": "'",
        "0": "\0",
    }

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects representing each lexical element

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue

            if self._skip_comment():
                continue

            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, updating line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _error(self, message: str, column: Optional[int] = None) -> AssemblySyntaxError:
        """
        Create a syntax error at the current line.

        Args:
            message: Error description
            column: Column to point at (defaults to the current column)
        """
        location = SourceLocation(self.filename, self._line, column or self._column)
        return AssemblySyntaxError(message, location, source_line=self.get_current_line())

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """Skip spaces, tabs and carriage returns, but not newlines."""
        skipped = False
        # Note: Must check for non-empty string first because '' in ' \t' is True in Python
        while self._peek() and self._peek() in " \t\r":
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        if self._peek() != ";":
            return False
        while not self._at_end() and self._peek() != "\n":
            self._advance()
        return True

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, start_line, start_column)

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char.isdigit():
            return self._scan_number(start_line, start_column)

        # Prefixed numbers; the prefix must be followed by a digit of its base
        if char == "$" and self._peek(1) and self._peek(1) in string.hexdigits:
            self._advance()
            return self._scan_digits(string.hexdigits, 16, "hexadecimal", start_line, start_column)
        if char == "%" and self._peek(1) and self._peek(1) in "01":
            self._advance()
            return self._scan_digits("01", 2, "binary", start_line, start_column)
        if char == "@" and self._peek(1) and self._peek(1) in string.octdigits:
            self._advance()
            return self._scan_digits(string.octdigits, 8, "octal", start_line, start_column)

        if char == "'":
            return self._scan_char(start_line, start_column)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], char, start_line, start_column)

        self._advance()
        raise self._error(f"unexpected character '{char}'", start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier (label, mnemonic or register).

        A leading '.' is kept in the name; the symbol table strips it.
        """
        chars = [self._advance()]
        # Note: Must check for non-empty string first because '' in 'string' is True in Python
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        if chars == ["."]:
            raise self._error("expected identifier after '.'", start_column)

        return self._make_token(TokenType.IDENTIFIER, "".join(chars), start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan a number that starts with a decimal digit.

        Handles plain decimal, the 0x/0b/0o prefixes and the trailing-h
        hexadecimal form.
        """
        # Trailing-h form takes precedence over the prefixes: 0B0h is $B0
        run = 0
        while self._peek(run) and self._peek(run) in string.hexdigits:
            run += 1
        if self._peek(run) in ("h", "H") and not self._continues_identifier(run + 1):
            digits = "".join(self._advance() for _ in range(run))
            self._advance()  # consume h
            return self._make_token(TokenType.NUMBER, int(digits, 16), start_line, start_column)

        if self._peek() == "0":
            prefix = self._peek(1).lower()
            if prefix == "x":
                self._advance()
                self._advance()
                return self._scan_digits(string.hexdigits, 16, "hexadecimal", start_line, start_column)
            if prefix == "b":
                self._advance()
                self._advance()
                return self._scan_digits("01", 2, "binary", start_line, start_column)
            if prefix == "o":
                self._advance()
                self._advance()
                return self._scan_digits(string.octdigits, 8, "octal", start_line, start_column)

        return self._scan_digits(string.digits, 10, "decimal", start_line, start_column)

    def _continues_identifier(self, offset: int) -> bool:
        char = self._peek(offset)
        return bool(char) and char in self.IDENT_CHARS

    def _scan_digits(
        self, digits: str, base: int, name: str, start_line: int, start_column: int
    ) -> Token:
        """Scan the digits of a number in the given base."""
        chars = []
        # Note: Must check for non-empty string first because '' in digits is True
        while self._peek() and self._peek() in digits:
            chars.append(self._advance())

        if not chars:
            raise self._error(f"expected {name} digits", start_column)

        if self._continues_identifier(0):
            raise self._error(f"invalid {name} number", start_column)

        value = int("".join(chars), base)
        return self._make_token(TokenType.NUMBER, value, start_line, start_column)

    def _scan_char(self, start_line: int, start_column: int) -> Token:
        """
        Scan a single-quoted character literal.

        Returns the character code as a NUMBER token.
        """
        self._advance()  # consume opening '

        if self._at_end() or self._peek() == "\n":
            raise self._error("unterminated character literal", start_column)

        if self._peek() == "\\":
            self._advance()
            escaped = self._advance()
            if escaped not in self.ESCAPE_SEQUENCES:
                raise self._error(f"unknown escape sequence '\\{escaped}'", start_column)
            char = self.ESCAPE_SEQUENCES[escaped]
        else:
            char = self._advance()

        if self._peek() != "'":
            raise self._error("expected closing quote for character literal", start_column)
        self._advance()

        return self._make_token(TokenType.NUMBER, ord(char), start_line, start_column)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_current_line(self) -> str:
        """Get the current line of source text."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]
