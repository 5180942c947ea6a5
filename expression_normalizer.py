"""
Normalización de expresiones de la calculadora.

Reescribe la sintaxis visual que escribe el usuario (glifos, porcentaje,
constantes, potencia, funciones y factorial) a una forma canónica que el
analizador de expression_parser entiende. El orden de los pasos importa:
cada reescritura supone que las anteriores ya se aplicaron.

Contrato:
    - normalize(raw: str) -> str
    - Lanza InvalidCharacterError y nada más.
    - normalize(normalize(s)) == normalize(s)
"""

from __future__ import annotations

import logging
import math
import re

from calculator_errors import InvalidCharacterError

logger = logging.getLogger(__name__)


FUNCTION_NAMES = (
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
    "sqrt",
    "abs",
    "floor",
    "ceil",
    "round",
    "log10",
    "ln",
)

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}

FACTORIAL_FUNCTION = "factorial"


class ExpressionNormalizer:
    """Aplica los pasos de normalización en orden fijo."""

    _GLYPHS = (
        ("×", "*"),
        ("÷", "/"),
        ("−", "-"),
        ("π", "pi"),
        ("√", "sqrt"),
    )

    _PERCENT_RE = re.compile(r"(?<![\w.])([0-9]+(?:\.[0-9]*)?|\.[0-9]+)%")
    _FUNCTION_OPEN_RE = re.compile(
        r"\b("
        + "|".join(sorted(FUNCTION_NAMES, key=len, reverse=True))
        + r")\s+\("
    )
    _TRAILING_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")
    _TRAILING_NUMBER_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$")
    _DISALLOWED_RE = re.compile(r"[^0-9+\-*/%^().,_\sA-Za-z!]")

    def __init__(self, constants: dict | None = None):
        self._constant_patterns = [
            (re.compile(rf"\b{re.escape(name)}\b"), f"({value!r})")
            for name, value in (constants or CONSTANTS).items()
        ]

    def normalize(self, raw: str) -> str:
        expr = raw.strip()

        expr = self._replace_glyphs(expr)
        expr = self._replace_percentage(expr)
        expr = self._replace_constants(expr)
        expr = expr.replace("**", "^")
        expr = self._FUNCTION_OPEN_RE.sub(r"\1(", expr)
        expr = self._replace_factorial(expr)
        self._check_characters(expr)

        logger.debug("Normalizado %r -> %r", raw, expr)
        return expr

    # ── Pasos ────────────────────────────────────────────────────

    def _replace_glyphs(self, expr: str) -> str:
        for glyph, ascii_text in self._GLYPHS:
            expr = expr.replace(glyph, ascii_text)
        return expr

    def _replace_percentage(self, expr: str) -> str:
        return self._PERCENT_RE.sub(r"(\1/100)", expr)

    def _replace_constants(self, expr: str) -> str:
        for pattern, literal in self._constant_patterns:
            expr = pattern.sub(literal, expr)
        return expr

    def _replace_factorial(self, expr: str) -> str:
        # El '!' más a la izquierda es siempre el más interno, así que
        # recorrer de izquierda a derecha resuelve (3!)! y 3!! correctamente.
        i = expr.find("!")

        while i != -1:
            start = self._factorial_operand_start(expr, i)
            if start is None:
                i = expr.find("!", i + 1)
                continue

            replacement = f"{FACTORIAL_FUNCTION}({expr[start:i]})"
            expr = expr[:start] + replacement + expr[i + 1 :]
            i = expr.find("!", start + len(replacement))

        return expr

    def _factorial_operand_start(self, expr: str, bang: int) -> int | None:
        j = bang - 1
        if j < 0:
            return None

        if expr[j] == ")":
            depth = 0
            while j >= 0:
                if expr[j] == ")":
                    depth += 1
                elif expr[j] == "(":
                    depth -= 1
                    if depth == 0:
                        break
                j -= 1
            if j < 0:
                return None

            name = self._TRAILING_NAME_RE.search(expr, 0, j)
            return name.start() if name else j

        number = self._TRAILING_NUMBER_RE.search(expr, 0, bang)
        if number is None:
            return None

        start = number.start()
        if start > 0 and (expr[start - 1].isalnum() or expr[start - 1] in "_."):
            return None

        # Solo el signo que abre toda la expresión entra en el operando:
        # -1! es factorial(-1), pero 2*-3! es 2*-(3!).
        k = start - 1
        while k >= 0 and expr[k].isspace():
            k -= 1
        if k >= 0 and expr[k] == "-" and not expr[:k].strip():
            return k

        return start

    def _check_characters(self, expr: str):
        match = self._DISALLOWED_RE.search(expr)
        if match:
            raise InvalidCharacterError(
                f"Carácter no permitido: {match.group()!r}",
                position=match.start(),
            )


_DEFAULT_NORMALIZER = ExpressionNormalizer()


def normalize(raw: str) -> str:
    """Normaliza ``raw`` con la configuración por defecto."""
    return _DEFAULT_NORMALIZER.normalize(raw)
