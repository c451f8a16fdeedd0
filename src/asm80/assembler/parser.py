"""
8080 Assembly Language Parser
=============================

This module implements a parser for 8080 assembly language. It converts
the token stream from the lexer into a Program of statements that the
assembler can encode.

Line Format
-----------
Each non-blank line holds at most one statement:

    [label:] mnemonic [operand [, operand]]   ; comment

A label on a line of its own is attached to the next statement. Label
names are case-sensitive; mnemonics and register names are not.

Operand Syntax
--------------
| Syntax          | Operand         | Example          |
|-----------------|-----------------|------------------|
| a b c d e h l m | RegisterOperand | mov a, b         |
| bc de hl sp     | PairOperand     | mov hl, 1234h    |
| number          | Constant        | mov a, 'A'       |
| [number]        | DirectMemory    | mov a, [8000h]   |
| [rp]            | IndirectMemory  | mov a, [bc]      |

Where an instruction takes only a register pair (push, pop, dad, inx,
dcx, lxi, ldax, stax), the short names b, d and h also mean BC, DE and HL.

Besides the generic ``mov``, the native 8080 mnemonics mvi, lxi, lda,
sta, ldax, stax, lhld, shld, sphl, xchg, xthl and cma are accepted and
map onto the same statement kinds, so listings can be re-assembled.
"""

from typing import Callable, Optional

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
    Operand,
    Out,
    PairOperand,
    Pop,
    PopPsw,
    Program,
    Push,
    PushPsw,
    RegisterOperand,
    Restart,
    Return,
    Statement,
    StatementKind,
)
from asm80.assembler.lexer import Lexer, Token, TokenType
from asm80.cpu import (
    PAIR_NAMES,
    ArithmeticType,
    InherentOp,
    JumpType,
    Register,
    RegisterPair,
    ReturnType,
)
from asm80.errors import AssemblySyntaxError


# =============================================================================
# Mnemonic Tables
# =============================================================================

INHERENT_MNEMONICS: dict[str, InherentOp] = {op.mnemonic: op for op in InherentOp}
INHERENT_MNEMONICS["cli"] = InherentOp.DI
INHERENT_MNEMONICS["sti"] = InherentOp.EI

JUMP_MNEMONICS: dict[str, JumpType] = {jt.mnemonic: jt for jt in JumpType}

RETURN_MNEMONICS: dict[str, ReturnType] = {rt.mnemonic: rt for rt in ReturnType}

# Take a register or a constant
ARITHMETIC_MNEMONICS: dict[str, ArithmeticType] = {
    kind.register_mnemonic: kind for kind in ArithmeticType
}
ARITHMETIC_MNEMONICS["and"] = ArithmeticType.AND
ARITHMETIC_MNEMONICS["xor"] = ArithmeticType.XOR
ARITHMETIC_MNEMONICS["or"] = ArithmeticType.OR

# Take a constant only
IMMEDIATE_MNEMONICS: dict[str, ArithmeticType] = {
    kind.immediate_mnemonic: kind for kind in ArithmeticType
}

REGISTER_NAMES: dict[str, Register] = {reg.value: reg for reg in Register}

# Pair names that never collide with a register name
LONG_PAIR_NAMES: dict[str, RegisterPair] = {
    "bc": RegisterPair.BC,
    "de": RegisterPair.DE,
    "hl": RegisterPair.HL,
    "sp": RegisterPair.SP,
}

MAX_WORD = 0xFFFF


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses 8080 assembly tokens into a Program.

    Usage:
        lexer = Lexer(source, filename)
        tokens = list(lexer.tokenize())
        parser = Parser(tokens, filename, source)
        program = parser.parse()
    """

    def __init__(self, tokens: list[Token], filename: str = "<input>", source: str = ""):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from lexer
            filename: Source filename for error reporting
            source: Source text, quoted in error messages
        """
        self._tokens = tokens
        self._filename = filename
        self._lines = source.splitlines()
        self._pos = 0
        self._handlers: dict[str, Callable[[str], StatementKind]] = self._build_handlers()

    def _build_handlers(self) -> dict[str, Callable[[str], StatementKind]]:
        handlers: dict[str, Callable[[str], StatementKind]] = {}
        for name in INHERENT_MNEMONICS:
            handlers[name] = self._parse_inherent
        for name in JUMP_MNEMONICS:
            handlers[name] = self._parse_jump
        for name in RETURN_MNEMONICS:
            handlers[name] = self._parse_return
        for name in ARITHMETIC_MNEMONICS:
            handlers[name] = self._parse_arithmetic
        for name in IMMEDIATE_MNEMONICS:
            handlers[name] = self._parse_immediate
        handlers.update({
            "in": self._parse_in,
            "out": self._parse_out,
            "push": self._parse_push,
            "pop": self._parse_pop,
            "inc": self._parse_inc,
            "inr": self._parse_inc,
            "inx": self._parse_inc,
            "dec": self._parse_dec,
            "dcr": self._parse_dec,
            "dcx": self._parse_dec,
            "dad": self._parse_dad,
            "rst": self._parse_rst,
            "neg": self._parse_neg,
            "cma": self._parse_cma,
            "mov": self._parse_mov,
            "mvi": self._parse_mvi,
            "lxi": self._parse_lxi,
            "lda": self._parse_lda,
            "sta": self._parse_sta,
            "ldax": self._parse_ldax,
            "stax": self._parse_stax,
            "lhld": self._parse_lhld,
            "shld": self._parse_shld,
            "sphl": self._parse_sphl,
            "xchg": self._parse_xchg,
            "xthl": self._parse_xthl,
            "db": self._parse_db,
            "dw": self._parse_dw,
            "lset": self._parse_lset,
        })
        return handlers

    def parse(self) -> Program:
        """
        Parse all tokens into a program.

        Raises:
            AssemblySyntaxError: If syntax error encountered
        """
        statements: list[Statement] = []
        pending_label: Optional[Token] = None

        while not self._at_end():
            if self._match(TokenType.NEWLINE):
                continue

            label = self._try_parse_label()
            if label is not None:
                if pending_label is not None:
                    raise self._error(
                        f"label '{pending_label.value}' is not followed by an instruction",
                        pending_label,
                        hint="put an instruction between the two labels",
                    )
                if self._check(TokenType.NEWLINE, TokenType.EOF):
                    pending_label = label
                    continue
            else:
                label = pending_label
            pending_label = None

            statements.append(self._parse_statement(label))

        if pending_label is not None:
            raise self._error(
                f"label '{pending_label.value}' is not followed by an instruction",
                pending_label,
            )

        return Program(statements)

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens) or self._current().type == TokenType.EOF

    def _current(self) -> Token:
        if self._pos >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else None
            return Token(
                TokenType.EOF, None,
                last.line if last else 1,
                last.column if last else 1,
                last.filename if last else self._filename
            )
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        pos = self._pos + offset
        if pos >= len(self._tokens):
            return self._current()
        return self._tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if not self._check(token_type):
            raise self._error(message, self._current())
        return self._advance()

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, message: str, token: Token, hint: Optional[str] = None) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message,
            token.location,
            hint=hint,
            source_line=self._source_line(token.line),
        )

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _try_parse_label(self) -> Optional[Token]:
        """Consume ``name:`` and return the name token, if present."""
        if self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.COLON:
            name_token = self._advance()
            self._advance()  # consume colon
            return name_token
        return None

    def _parse_statement(self, label: Optional[Token]) -> Statement:
        mnemonic_token = self._expect(TokenType.IDENTIFIER, "expected instruction mnemonic")
        mnemonic = mnemonic_token.value.lower()

        handler = self._handlers.get(mnemonic)
        if handler is None:
            raise self._error(f"unknown instruction '{mnemonic_token.value}'", mnemonic_token)

        kind = handler(mnemonic)

        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            raise self._error("unexpected tokens after instruction", self._current())
        self._match(TokenType.NEWLINE)

        # A label on its own line still reports errors at the instruction
        location = mnemonic_token.location
        if label is not None and label.line == mnemonic_token.line:
            location = label.location

        return Statement(
            kind=kind,
            label=label.value if label is not None else None,
            location=location,
            source_line=self._source_line(mnemonic_token.line),
        )

    # =========================================================================
    # Operand Parsing
    # =========================================================================

    def _parse_number(self, what: str = "number") -> int:
        token = self._expect(TokenType.NUMBER, f"expected {what}")
        if token.value > MAX_WORD:
            raise self._error(
                f"number {token.value} is too wide for a 16-bit word",
                token,
                hint="values must be between 0 and 65535 ($FFFF)",
            )
        return token.value

    def _parse_register(self) -> Register:
        token = self._expect(TokenType.IDENTIFIER, "expected register")
        register = REGISTER_NAMES.get(token.value.lower())
        if register is None:
            raise self._error(
                f"expected register, found '{token.value}'",
                token,
                hint="registers are a, b, c, d, e, h, l and m",
            )
        return register

    def _parse_pair(self) -> RegisterPair:
        token = self._expect(TokenType.IDENTIFIER, "expected register pair")
        pair = PAIR_NAMES.get(token.value.lower())
        if pair is None:
            raise self._error(
                f"expected register pair, found '{token.value}'",
                token,
                hint="register pairs are bc, de, hl and sp",
            )
        return pair

    def _parse_comma(self) -> None:
        self._expect(TokenType.COMMA, "expected ',' between operands")

    def _parse_operand(self) -> Operand:
        """Parse a general move operand: r, rp, n, [n] or [rp]."""
        if self._match(TokenType.LBRACKET):
            if self._check(TokenType.NUMBER):
                operand: Operand = DirectMemory(self._parse_number("address"))
            else:
                operand = IndirectMemory(self._parse_pair())
            self._expect(TokenType.RBRACKET, "expected ']'")
            return operand

        if self._check(TokenType.NUMBER):
            return Constant(self._parse_number())

        token = self._expect(TokenType.IDENTIFIER, "expected operand")
        name = token.value.lower()
        if name in REGISTER_NAMES:
            return RegisterOperand(REGISTER_NAMES[name])
        if name in LONG_PAIR_NAMES:
            return PairOperand(LONG_PAIR_NAMES[name])
        raise self._error(f"unknown operand '{token.value}'", token)

    def _parse_register_or_pair(self) -> RegisterOperand | PairOperand:
        token = self._current()
        operand = self._parse_operand()
        if not isinstance(operand, (RegisterOperand, PairOperand)):
            raise self._error("expected register or register pair", token)
        return operand

    # =========================================================================
    # Instruction Forms
    # =========================================================================

    def _parse_inherent(self, mnemonic: str) -> StatementKind:
        return Inherent(INHERENT_MNEMONICS[mnemonic])

    def _parse_jump(self, mnemonic: str) -> StatementKind:
        token = self._expect(TokenType.IDENTIFIER, "expected label")
        return Jump(token.value, JUMP_MNEMONICS[mnemonic])

    def _parse_return(self, mnemonic: str) -> StatementKind:
        return Return(RETURN_MNEMONICS[mnemonic])

    def _parse_in(self, mnemonic: str) -> StatementKind:
        return In(self._parse_number("port number"))

    def _parse_out(self, mnemonic: str) -> StatementKind:
        return Out(self._parse_number("port number"))

    def _parse_push(self, mnemonic: str) -> StatementKind:
        if self._check(TokenType.IDENTIFIER) and self._current().value.lower() == "psw":
            self._advance()
            return PushPsw()
        return Push(self._parse_pair())

    def _parse_pop(self, mnemonic: str) -> StatementKind:
        if self._check(TokenType.IDENTIFIER) and self._current().value.lower() == "psw":
            self._advance()
            return PopPsw()
        return Pop(self._parse_pair())

    def _parse_arithmetic(self, mnemonic: str) -> StatementKind:
        kind = ARITHMETIC_MNEMONICS[mnemonic]
        if self._check(TokenType.NUMBER):
            return ArithmeticConstant(self._parse_number(), kind)
        return Arithmetic(self._parse_register(), kind)

    def _parse_immediate(self, mnemonic: str) -> StatementKind:
        return ArithmeticConstant(self._parse_number(), IMMEDIATE_MNEMONICS[mnemonic])

    def _parse_inc(self, mnemonic: str) -> StatementKind:
        if mnemonic == "inr":
            return Increment(self._parse_register())
        if mnemonic == "inx":
            return IncrementPair(self._parse_pair())
        operand = self._parse_register_or_pair()
        if isinstance(operand, RegisterOperand):
            return Increment(operand.register)
        return IncrementPair(operand.pair)

    def _parse_dec(self, mnemonic: str) -> StatementKind:
        if mnemonic == "dcr":
            return Decrement(self._parse_register())
        if mnemonic == "dcx":
            return DecrementPair(self._parse_pair())
        operand = self._parse_register_or_pair()
        if isinstance(operand, RegisterOperand):
            return Decrement(operand.register)
        return DecrementPair(operand.pair)

    def _parse_dad(self, mnemonic: str) -> StatementKind:
        return AddPair(self._parse_pair())

    def _parse_rst(self, mnemonic: str) -> StatementKind:
        return Restart(self._parse_number("restart vector"))

    def _parse_neg(self, mnemonic: str) -> StatementKind:
        return Negate(self._parse_register())

    def _parse_cma(self, mnemonic: str) -> StatementKind:
        return Negate(Register.A)

    def _parse_mov(self, mnemonic: str) -> StatementKind:
        dst = self._parse_operand()
        self._parse_comma()
        return Move(dst, self._parse_operand())

    def _parse_mvi(self, mnemonic: str) -> StatementKind:
        register = self._parse_register()
        self._parse_comma()
        return Move(RegisterOperand(register), Constant(self._parse_number()))

    def _parse_lxi(self, mnemonic: str) -> StatementKind:
        pair = self._parse_pair()
        self._parse_comma()
        return Move(PairOperand(pair), Constant(self._parse_number()))

    def _parse_lda(self, mnemonic: str) -> StatementKind:
        return Move(RegisterOperand(Register.A), DirectMemory(self._parse_number("address")))

    def _parse_sta(self, mnemonic: str) -> StatementKind:
        return Move(DirectMemory(self._parse_number("address")), RegisterOperand(Register.A))

    def _parse_ldax(self, mnemonic: str) -> StatementKind:
        return Move(RegisterOperand(Register.A), IndirectMemory(self._parse_pair()))

    def _parse_stax(self, mnemonic: str) -> StatementKind:
        return Move(IndirectMemory(self._parse_pair()), RegisterOperand(Register.A))

    def _parse_lhld(self, mnemonic: str) -> StatementKind:
        return Move(PairOperand(RegisterPair.HL), DirectMemory(self._parse_number("address")))

    def _parse_shld(self, mnemonic: str) -> StatementKind:
        return Move(DirectMemory(self._parse_number("address")), PairOperand(RegisterPair.HL))

    def _parse_sphl(self, mnemonic: str) -> StatementKind:
        return Move(PairOperand(RegisterPair.SP), PairOperand(RegisterPair.HL))

    def _parse_xchg(self, mnemonic: str) -> StatementKind:
        return Move(PairOperand(RegisterPair.HL), PairOperand(RegisterPair.DE))

    def _parse_xthl(self, mnemonic: str) -> StatementKind:
        return Move(PairOperand(RegisterPair.HL), IndirectMemory(RegisterPair.SP))

    def _parse_db(self, mnemonic: str) -> StatementKind:
        return DefineByte(self._parse_number())

    def _parse_dw(self, mnemonic: str) -> StatementKind:
        return DefineWord(self._parse_number())

    def _parse_lset(self, mnemonic: str) -> StatementKind:
        return LabelSet(self._parse_number("address"))


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> Program:
    """
    Convenience function to parse assembly source.

    Args:
        source: Assembly source text
        filename: Source filename for error messages

    Returns:
        The parsed program

    Raises:
        AssemblySyntaxError: If the source is malformed
    """
    lexer = Lexer(source, filename)
    tokens = list(lexer.tokenize())
    parser = Parser(tokens, filename, source)
    return parser.parse()
