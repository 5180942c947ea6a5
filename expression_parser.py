"""
Análisis léxico y sintáctico de expresiones normalizadas.

Solo se construyen nodos de una gramática cerrada; no existe ningún
camino de texto a código ejecutable.

Precedencia, de mayor a menor:
    1. números, constantes, llamadas name(expr) y paréntesis
    2. postfijos '!' y '%'
    3. signo unario '-' / '+'
    4. potencia '^' (asociativa por la derecha)
    5. '*' y '/'
    6. '+' y '-'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from calculator_errors import (
    ExpressionSyntaxError,
    InvalidCharacterError,
    UnknownFunctionError,
    UnknownIdentifierError,
)
from expression_normalizer import CONSTANTS, FACTORIAL_FUNCTION, FUNCTION_NAMES


DEFAULT_MAX_DEPTH = 100


# ═════════════════════════════════════════════════════════════════
#  Tokens
# ═════════════════════════════════════════════════════════════════

class TokenKind(Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    value: float | None = None


_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<number>(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+\-]?[0-9]+)?)
    | (?P<identifier>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<power>\*\*)
    | (?P<operator>[+\-*/^!%])
    | (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<comma>,)
    """,
    re.VERBOSE,
)


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0

    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise InvalidCharacterError(
                f"Carácter no permitido: {text[pos]!r}", position=pos
            )

        group = match.lastgroup
        lexeme = match.group()
        if group == "number":
            tokens.append(Token(TokenKind.NUMBER, lexeme, pos, float(lexeme)))
        elif group == "identifier":
            tokens.append(Token(TokenKind.IDENTIFIER, lexeme, pos))
        elif group == "power":
            tokens.append(Token(TokenKind.OPERATOR, "^", pos))
        elif group == "operator":
            tokens.append(Token(TokenKind.OPERATOR, lexeme, pos))
        elif group == "lparen":
            tokens.append(Token(TokenKind.LPAREN, lexeme, pos))
        elif group == "rparen":
            tokens.append(Token(TokenKind.RPAREN, lexeme, pos))
        elif group == "comma":
            tokens.append(Token(TokenKind.COMMA, lexeme, pos))

        pos = match.end()

    return tokens


# ═════════════════════════════════════════════════════════════════
#  Nodos del árbol
# ═════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Literal:
    value: float


@dataclass(frozen=True)
class Constant:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Factorial:
    operand: "Node"


@dataclass(frozen=True)
class Percent:
    operand: "Node"


@dataclass(frozen=True)
class FunctionCall:
    name: str
    argument: "Node"


Node = Union[Literal, Constant, UnaryOp, BinaryOp, Factorial, Percent, FunctionCall]


# ═════════════════════════════════════════════════════════════════
#  Analizador
# ═════════════════════════════════════════════════════════════════

class ExpressionParser:
    """Descenso recursivo sobre la lista de tokens.

    Cada llamada a parse() es independiente; el estado de lectura vive
    en un cursor local, de modo que una instancia puede compartirse.
    """

    def __init__(
        self,
        functions: Iterable[str] = FUNCTION_NAMES,
        constants: Iterable[str] = tuple(CONSTANTS),
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._functions = frozenset(functions)
        self._constants = frozenset(constants)
        self._max_depth = max(1, max_depth)

    def parse(self, source: str | list[Token]) -> Node:
        tokens = tokenize(source) if isinstance(source, str) else list(source)
        if not tokens:
            raise ExpressionSyntaxError("Expresión vacía")

        cursor = _Cursor(tokens, self)
        node = cursor.expression()
        tok = cursor.peek()
        if tok is not None:
            if tok.kind is TokenKind.RPAREN:
                raise ExpressionSyntaxError("')' sin '(' correspondiente", tok.position)
            raise ExpressionSyntaxError(f"Símbolo inesperado {tok.text!r}", tok.position)
        return node


class _Cursor:
    def __init__(self, tokens: list[Token], parser: ExpressionParser):
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._functions = parser._functions
        self._constants = parser._constants
        self._max_depth = parser._max_depth

    # ── Lectura ──────────────────────────────────────────────────

    def peek(self) -> Token | None:
        if self._pos >= len(self._tokens):
            return None
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _at_operator(self, *symbols: str) -> bool:
        tok = self.peek()
        return tok is not None and tok.kind is TokenKind.OPERATOR and tok.text in symbols

    def _end_position(self) -> int:
        last = self._tokens[-1]
        return last.position + len(last.text)

    def _expect_rparen(self, opener: Token):
        tok = self.peek()
        if tok is None:
            raise ExpressionSyntaxError("Falta ')'", opener.position)
        if tok.kind is not TokenKind.RPAREN:
            raise ExpressionSyntaxError(
                f"Se esperaba ')' y se encontró {tok.text!r}", tok.position
            )
        self._advance()

    def _enter(self, tok: Token | None):
        self._depth += 1
        if self._depth > self._max_depth:
            position = tok.position if tok is not None else self._end_position()
            raise ExpressionSyntaxError("Expresión demasiado anidada", position)

    def _leave(self):
        self._depth -= 1

    # ── Gramática ────────────────────────────────────────────────

    def expression(self) -> Node:
        self._enter(self.peek())
        try:
            node = self._term()
            while self._at_operator("+", "-"):
                op = self._advance().text
                node = BinaryOp(op, node, self._term())
            return node
        finally:
            self._leave()

    def _term(self) -> Node:
        node = self._power()
        while self._at_operator("*", "/"):
            op = self._advance().text
            node = BinaryOp(op, node, self._power())
        return node

    def _power(self) -> Node:
        base = self._unary()
        if self._at_operator("^"):
            self._advance()
            self._enter(self.peek())
            try:
                exponent = self._power()
            finally:
                self._leave()
            return BinaryOp("^", base, exponent)
        return base

    def _unary(self) -> Node:
        if self._at_operator("-", "+"):
            op = self._advance().text
            self._enter(self.peek())
            try:
                operand = self._unary()
            finally:
                self._leave()
            return UnaryOp(op, operand)
        return self._postfix()

    def _postfix(self) -> Node:
        node = self._primary()
        while self._at_operator("!", "%"):
            op = self._advance().text
            node = Factorial(node) if op == "!" else Percent(node)
        return node

    def _primary(self) -> Node:
        tok = self.peek()
        if tok is None:
            raise ExpressionSyntaxError("Falta un operando al final", self._end_position())

        if tok.kind is TokenKind.NUMBER:
            self._advance()
            return Literal(tok.value)

        if tok.kind is TokenKind.LPAREN:
            self._advance()
            if self.peek() is not None and self.peek().kind is TokenKind.RPAREN:
                raise ExpressionSyntaxError("Paréntesis vacíos", tok.position)
            node = self.expression()
            self._expect_rparen(tok)
            return node

        if tok.kind is TokenKind.IDENTIFIER:
            return self._identifier()

        if tok.kind is TokenKind.RPAREN:
            raise ExpressionSyntaxError("Falta un operando antes de ')'", tok.position)
        if tok.kind is TokenKind.COMMA:
            raise ExpressionSyntaxError("',' fuera de una llamada a función", tok.position)
        raise ExpressionSyntaxError(f"Operador {tok.text!r} sin operando", tok.position)

    def _identifier(self) -> Node:
        tok = self._advance()
        name = tok.text
        nxt = self.peek()
        is_call = nxt is not None and nxt.kind is TokenKind.LPAREN

        if not is_call:
            if name in self._constants:
                return Constant(name)
            if name in self._functions or name == FACTORIAL_FUNCTION:
                raise ExpressionSyntaxError(f"Falta '(' después de {name}", tok.position)
            raise UnknownIdentifierError(f"Identificador desconocido: {name}", tok.position)

        if name not in self._functions and name != FACTORIAL_FUNCTION:
            raise UnknownFunctionError(f"Función desconocida: {name}", tok.position)

        opener = self._advance()
        if self.peek() is not None and self.peek().kind is TokenKind.RPAREN:
            raise ExpressionSyntaxError(f"{name}() necesita un argumento", opener.position)
        argument = self.expression()
        if self.peek() is not None and self.peek().kind is TokenKind.COMMA:
            raise ExpressionSyntaxError(
                f"{name} admite un solo argumento", self.peek().position
            )
        self._expect_rparen(opener)

        if name == FACTORIAL_FUNCTION:
            return Factorial(argument)
        return FunctionCall(name, argument)
