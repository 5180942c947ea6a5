"""Cálculo numérico del árbol de expresión para la calculadora científica."""

from __future__ import annotations

import logging
import math

from calculator_errors import (
    DomainError,
    ExpressionSyntaxError,
    NonFiniteError,
    ResultOverflowError,
    UnknownFunctionError,
    UnknownIdentifierError,
)
from expression_normalizer import CONSTANTS, FUNCTION_NAMES
from expression_parser import (
    DEFAULT_MAX_DEPTH,
    BinaryOp,
    Constant,
    ExpressionParser,
    Factorial,
    FunctionCall,
    Literal,
    Node,
    Percent,
    UnaryOp,
)

logger = logging.getLogger(__name__)


# 170! es el mayor factorial representable como double.
DEFAULT_MAX_FACTORIAL = 170


class PythonMathProvider:
    """Provee funciones y constantes matemáticas en un namespace seguro."""

    def __init__(self):
        self._angle_mode = "rad"

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        if mode not in ("rad", "deg"):
            raise ValueError("El modo debe ser 'rad' o 'deg'")
        self._angle_mode = mode

    @staticmethod
    def _round_half_up(x):
        return float(math.floor(x + 0.5))

    def build_namespace(self) -> dict:
        mode = self._angle_mode

        def _trig(fn):
            def w(x):
                return fn(math.radians(x) if mode == "deg" else x)

            return w

        def _inv_trig(fn):
            def w(x):
                r = fn(x)
                return math.degrees(r) if mode == "deg" else r

            return w

        return {
            "sin": _trig(math.sin),
            "cos": _trig(math.cos),
            "tan": _trig(math.tan),
            "asin": _inv_trig(math.asin),
            "acos": _inv_trig(math.acos),
            "atan": _inv_trig(math.atan),
            "sqrt": math.sqrt,
            "abs": abs,
            "floor": lambda x: float(math.floor(x)),
            "ceil": lambda x: float(math.ceil(x)),
            "round": self._round_half_up,
            "log10": math.log10,
            "ln": math.log,
            "pi": math.pi,
            "e": math.e,
        }


def _children(node: Node) -> tuple:
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, FunctionCall):
        return (node.argument,)
    return (node.operand,)


class FormulaEvaluator:
    """Analiza expresiones normalizadas y calcula su valor como double.

    El recorrido del árbol es iterativo: una cadena larga como 1+1+...+1
    produce un árbol muy profundo por la izquierda y no debe agotar la pila.
    """

    def __init__(
        self,
        provider: PythonMathProvider,
        max_factorial: int = DEFAULT_MAX_FACTORIAL,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._provider = provider
        self._max_factorial = max_factorial
        self._parser = ExpressionParser(FUNCTION_NAMES, tuple(CONSTANTS), max_depth)

    def parse(self, expression: str) -> Node:
        if not expression or not expression.strip():
            raise ExpressionSyntaxError("Expresión vacía")
        return self._parser.parse(expression)

    def evaluate(self, expression: str) -> float:
        """Calcula una expresión ya normalizada.

        Raises:
            CalculationError: cualquiera de sus subclases tipadas.
        """
        return self.compute(self.parse(expression))

    def compute(self, node: Node) -> float:
        namespace = self._provider.build_namespace()
        values: list[float] = []
        pending: list[tuple[Node, bool]] = [(node, False)]

        while pending:
            current, expanded = pending.pop()

            if isinstance(current, Literal):
                values.append(self._finite(current.value))
            elif isinstance(current, Constant):
                values.append(self._constant(current.name, namespace))
            elif not expanded:
                pending.append((current, True))
                pending.extend((child, False) for child in reversed(_children(current)))
            elif isinstance(current, BinaryOp):
                right = values.pop()
                left = values.pop()
                values.append(self._binary(current.op, left, right))
            elif isinstance(current, UnaryOp):
                operand = values.pop()
                values.append(-operand if current.op == "-" else operand)
            elif isinstance(current, Factorial):
                values.append(self._factorial(values.pop()))
            elif isinstance(current, Percent):
                values.append(values.pop() / 100)
            elif isinstance(current, FunctionCall):
                values.append(self._call(current.name, values.pop(), namespace))

        result = values.pop()
        logger.debug("Resultado %r", result)
        return result

    # ── Operaciones ──────────────────────────────────────────────

    @staticmethod
    def _finite(value) -> float:
        value = float(value)
        if not math.isfinite(value):
            raise NonFiniteError(f"Resultado no finito: {value}")
        return value

    def _constant(self, name: str, namespace: dict) -> float:
        if name not in CONSTANTS or name not in namespace:
            raise UnknownIdentifierError(f"Identificador desconocido: {name}")
        return self._finite(namespace[name])

    def _binary(self, op: str, left: float, right: float) -> float:
        if op == "+":
            return self._finite(left + right)
        if op == "-":
            return self._finite(left - right)
        if op == "*":
            return self._finite(left * right)
        if op == "/":
            if right == 0:
                raise NonFiniteError("División por cero")
            return self._finite(left / right)
        if op == "^":
            try:
                return self._finite(math.pow(left, right))
            except OverflowError as exc:
                raise ResultOverflowError(f"{left}^{right} desborda el rango") from exc
            except ValueError as exc:
                raise NonFiniteError(f"{left}^{right} no es un número real") from exc
        raise ExpressionSyntaxError(f"Operador desconocido: {op}")

    def _factorial(self, x: float) -> float:
        if x < 0 or math.floor(x) != x:
            raise DomainError("factorial requiere entero no negativo")
        if x > self._max_factorial:
            raise ResultOverflowError(
                f"factorial admite como máximo {self._max_factorial}"
            )

        result = 1.0
        for i in range(2, int(x) + 1):
            result *= i
        return self._finite(result)

    def _call(self, name: str, argument: float, namespace: dict) -> float:
        fn = namespace.get(name)
        if name not in FUNCTION_NAMES or not callable(fn):
            raise UnknownFunctionError(f"Función desconocida: {name}")

        try:
            result = fn(argument)
        except OverflowError as exc:
            raise ResultOverflowError(f"{name}({argument}) desborda el rango") from exc
        except (ValueError, ZeroDivisionError) as exc:
            raise NonFiniteError(f"{name}({argument}) fuera de dominio") from exc
        return self._finite(result)
