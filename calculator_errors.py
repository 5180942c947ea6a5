"""Errores tipados del núcleo de evaluación de la calculadora."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    INVALID_CHARACTER = "InvalidCharacter"
    SYNTAX_ERROR = "SyntaxError"
    UNKNOWN_IDENTIFIER = "UnknownIdentifier"
    UNKNOWN_FUNCTION = "UnknownFunction"
    DOMAIN_ERROR = "DomainError"
    NON_FINITE = "NonFinite"
    OVERFLOW = "Overflow"

    def __str__(self) -> str:
        return self.value


class CalculationError(ValueError):
    """Fallo controlado al normalizar, analizar o calcular una expresión.

    Hereda de ValueError para que quien ya capture ValueError (el
    contrato de CalculatorEngine) siga funcionando.
    """

    kind: ErrorKind = ErrorKind.SYNTAX_ERROR

    def __init__(self, message: str, position: int | None = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (posición {self.position})"


class InvalidCharacterError(CalculationError):
    kind = ErrorKind.INVALID_CHARACTER


class ExpressionSyntaxError(CalculationError):
    kind = ErrorKind.SYNTAX_ERROR


class UnknownIdentifierError(CalculationError):
    kind = ErrorKind.UNKNOWN_IDENTIFIER


class UnknownFunctionError(CalculationError):
    kind = ErrorKind.UNKNOWN_FUNCTION


class DomainError(CalculationError):
    kind = ErrorKind.DOMAIN_ERROR


class NonFiniteError(CalculationError):
    kind = ErrorKind.NON_FINITE


class ResultOverflowError(CalculationError):
    kind = ErrorKind.OVERFLOW
