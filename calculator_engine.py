"""
Motor de cálculo para la calculadora científica.

Este módulo provee la clase CalculatorEngine, que compone la
normalización, el análisis y el cálculo de expresiones. El proveedor
matemático es intercambiable (PythonMathProvider o MPMathProvider).

Contrato de interfaz:
    - normalize(raw: str) -> str               (lanza InvalidCharacterError)
    - compute(raw: str) -> float               (lanza CalculationError)
    - evaluate(raw: str) -> EvaluationResult   (nunca lanza)
    - angle_mode: propiedad 'rad' | 'deg'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from calculator_errors import (
    CalculationError,
    ErrorKind,
    ExpressionSyntaxError,
    NonFiniteError,
    ResultOverflowError,
)
from expression_normalizer import ExpressionNormalizer
from expression_parser import DEFAULT_MAX_DEPTH
from formula_evaluator import DEFAULT_MAX_FACTORIAL, FormulaEvaluator, PythonMathProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """Valor finito o fallo tipado; nunca ambos."""

    value: float | None = None
    error: CalculationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None


class CalculatorEngine:
    """Evalúa expresiones matemáticas con funciones científicas."""

    def __init__(
        self,
        provider=None,
        max_factorial: int = DEFAULT_MAX_FACTORIAL,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._provider = provider if provider is not None else PythonMathProvider()
        self._normalizer = ExpressionNormalizer()
        self._evaluator = FormulaEvaluator(
            self._provider,
            max_factorial=max_factorial,
            max_depth=max_depth,
        )

    # ── Propiedad: modo angular ──────────────────────────────────

    @property
    def angle_mode(self) -> str:
        return self._provider.angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        self._provider.angle_mode = mode

    # ── Evaluación principal ─────────────────────────────────────

    def normalize(self, raw: str) -> str:
        return self._normalizer.normalize(raw)

    def compute(self, raw: str) -> float:
        """Normaliza y calcula la expresión.

        Raises:
            CalculationError: alguna de sus subclases tipadas.
        """
        if not raw or not raw.strip():
            raise ExpressionSyntaxError("Expresión vacía")

        normalized = self.normalize(raw)
        return self._evaluator.evaluate(normalized)

    def evaluate(self, raw: str) -> EvaluationResult:
        """Evalúa la expresión y devuelve un resultado tipado, sin lanzar."""
        try:
            value = self.compute(raw)
        except CalculationError as exc:
            logger.info("Expresión %r rechazada: %s: %s", raw, exc.kind, exc)
            return EvaluationResult(error=exc)
        except RecursionError:
            logger.info("Expresión %r rechazada por anidamiento", raw)
            return EvaluationResult(
                error=ExpressionSyntaxError("Expresión demasiado anidada")
            )
        except ArithmeticError as exc:
            logger.info("Expresión %r produjo un error aritmético: %s", raw, exc)
            error = (
                ResultOverflowError(str(exc))
                if isinstance(exc, OverflowError)
                else NonFiniteError(str(exc) or type(exc).__name__)
            )
            return EvaluationResult(error=error)

        return EvaluationResult(value=value)

    # ── Formato del resultado ────────────────────────────────────

    @staticmethod
    def format_result(value) -> str:
        if isinstance(value, float):
            if value == int(value) and abs(value) < 1e15:
                return str(int(value))
            return f"{value:.15g}"

        return str(value)


_DEFAULT_ENGINE = CalculatorEngine()


def normalize(raw: str) -> str:
    """Normaliza ``raw`` con el motor por defecto."""
    return _DEFAULT_ENGINE.normalize(raw)


def evaluate(raw: str) -> EvaluationResult:
    """Evalúa ``raw`` con el motor por defecto."""
    return _DEFAULT_ENGINE.evaluate(raw)
