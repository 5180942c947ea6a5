"""
Estado de una sesión de calculadora.

Agrupa lo que antes vivía en variables globales de la interfaz: el texto
en edición, el registro de memoria, el último resultado y el historial.
Cada sesión es independiente; pueden coexistir varias con el mismo motor.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass

from calculator_engine import CalculatorEngine, EvaluationResult
from calculator_errors import ResultOverflowError

logger = logging.getLogger(__name__)


HISTORY_CAPACITY = 8
ERROR_TEXT = "Error"


@dataclass(frozen=True)
class HistoryEntry:
    expression: str
    result: str

    def __str__(self) -> str:
        return f"{self.expression} = {self.result}"


class CalculatorSession:
    """Texto de entrada, memoria e historial de una calculadora."""

    def __init__(
        self,
        engine: CalculatorEngine | None = None,
        history_capacity: int = HISTORY_CAPACITY,
    ):
        self.engine = engine if engine is not None else CalculatorEngine()
        self.expression = ""
        self.memory = 0.0
        self.last_result: float | None = None
        self._history: deque[HistoryEntry] = deque(maxlen=max(1, history_capacity))
        self._error = False

    # ── Texto ────────────────────────────────────────────────────

    @property
    def display(self) -> str:
        if self._error:
            return ERROR_TEXT
        return self.expression or "0"

    @property
    def history(self) -> list[HistoryEntry]:
        """Entradas del historial, la más reciente primero."""
        return list(self._history)

    def insert(self, text: str):
        self._error = False
        self.expression += text

    def insert_paren(self):
        opened = self.expression.count("(")
        closed = self.expression.count(")")
        self.insert("(" if opened == closed else ")")

    def backspace(self):
        self._error = False
        self.expression = self.expression[:-1]

    def clear(self):
        self._error = False
        self.expression = ""

    # ── Evaluación ───────────────────────────────────────────────

    def _evaluate_current(self) -> EvaluationResult | None:
        if not self.expression.strip():
            return None

        result = self.engine.evaluate(self.expression)
        if result.ok:
            self.last_result = result.value
            self._error = False
        else:
            # El texto se conserva para que el usuario pueda corregirlo.
            self.last_result = None
            self._error = True
        return result

    def equals(self) -> EvaluationResult | None:
        expression = self.expression
        result = self._evaluate_current()
        if result is None or not result.ok:
            return result

        formatted = self.engine.format_result(result.value)
        self._history.appendleft(HistoryEntry(expression, formatted))
        self.expression = self._exact_text(result.value)
        logger.debug("%s = %s", expression, formatted)
        return result

    # ── Memoria ──────────────────────────────────────────────────

    def _exact_text(self, value: float) -> str:
        # El texto que vuelve al buffer debe reproducir el mismo double.
        formatted = self.engine.format_result(value)
        return formatted if float(formatted) == value else repr(value)

    def _update_memory(self, sign: int) -> EvaluationResult | None:
        result = self._evaluate_current()
        if result is None or not result.ok:
            return result

        updated = self.memory + sign * result.value
        if not math.isfinite(updated):
            logger.info("Memoria sin cambios: %r desborda el rango", updated)
            return EvaluationResult(
                error=ResultOverflowError("La memoria desborda el rango")
            )
        self.memory = updated
        return result

    def memory_add(self) -> EvaluationResult | None:
        return self._update_memory(1)

    def memory_subtract(self) -> EvaluationResult | None:
        return self._update_memory(-1)

    def memory_recall(self):
        self.insert(self._exact_text(self.memory))

    def memory_clear(self):
        self.memory = 0.0
