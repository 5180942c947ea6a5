import math

import pytest

from calculator_errors import (
    DomainError,
    ExpressionSyntaxError,
    NonFiniteError,
    ResultOverflowError,
    UnknownIdentifierError,
)
from expression_parser import Constant, Literal
from formula_evaluator import FormulaEvaluator, PythonMathProvider


@pytest.fixture
def evaluator():
    return FormulaEvaluator(PythonMathProvider())


@pytest.mark.parametrize(
    "expr, expected",
    [
        ("2+3*4", 14.0),
        ("(2+3)*4", 20.0),
        ("2^3^2", 512.0),
        ("7/2", 3.5),
        ("8-3-1", 4.0),
        ("-2^2", 4.0),
        ("2^-1", 0.5),
        ("(1+1)%", 0.02),
        ("factorial(5)", 120.0),
        ("factorial(0)", 1.0),
        ("sqrt(16)", 4.0),
        ("abs(-3)", 3.0),
        ("floor(-1.5)", -2.0),
        ("ceil(1.2)", 2.0),
        ("round(2.5)", 3.0),
        ("round(-2.5)", -2.0),
        ("log10(1000)", 3.0),
        ("1e3+1", 1001.0),
    ],
)
def test_arithmetic(evaluator, expr, expected):
    assert evaluator.evaluate(expr) == pytest.approx(expected)


def test_natural_log_and_trig(evaluator):
    assert evaluator.evaluate("ln(2.718281828459045)") == pytest.approx(1.0)
    assert evaluator.evaluate("sin(0)") == 0.0
    assert evaluator.evaluate("cos(0)") == 1.0
    assert evaluator.evaluate("atan(1)") == pytest.approx(math.pi / 4)


def test_degree_mode():
    provider = PythonMathProvider()
    provider.angle_mode = "deg"
    evaluator = FormulaEvaluator(provider)
    assert evaluator.evaluate("sin(90)") == pytest.approx(1.0)
    assert evaluator.evaluate("asin(1)") == pytest.approx(90.0)


def test_invalid_angle_mode():
    with pytest.raises(ValueError):
        PythonMathProvider().angle_mode = "grad"


@pytest.mark.parametrize(
    "expr",
    ["1/0", "0/0", "0^-1", "(-8)^(1/3)", "sqrt(-1)", "ln(0)", "asin(2)", "1e308*10", "1e400"],
)
def test_non_finite_values_are_failures(evaluator, expr):
    with pytest.raises(NonFiniteError):
        evaluator.evaluate(expr)


@pytest.mark.parametrize("expr", ["factorial(-1)", "factorial(2.5)", "(-3)!"])
def test_factorial_domain(evaluator, expr):
    with pytest.raises(DomainError):
        evaluator.evaluate(expr)


def test_factorial_cap():
    assert FormulaEvaluator(PythonMathProvider()).evaluate("factorial(170)") > 1e306
    with pytest.raises(ResultOverflowError):
        FormulaEvaluator(PythonMathProvider()).evaluate("factorial(171)")
    with pytest.raises(ResultOverflowError):
        FormulaEvaluator(PythonMathProvider()).evaluate("factorial(999999999)")

    small = FormulaEvaluator(PythonMathProvider(), max_factorial=10)
    assert small.evaluate("factorial(10)") == 3628800.0
    with pytest.raises(ResultOverflowError):
        small.evaluate("factorial(11)")


def test_power_overflow(evaluator):
    with pytest.raises(ResultOverflowError):
        evaluator.evaluate("10^400")


def test_long_chains_do_not_exhaust_the_stack(evaluator):
    assert evaluator.evaluate("+".join(["1"] * 5000)) == 5000.0
    assert evaluator.evaluate("*".join(["1"] * 5000)) == 1.0


def test_compute_tree_directly(evaluator):
    assert evaluator.compute(Constant("pi")) == math.pi
    assert evaluator.compute(Literal(2.0)) == 2.0
    with pytest.raises(UnknownIdentifierError):
        evaluator.compute(Constant("tau"))


def test_empty_expression(evaluator):
    with pytest.raises(ExpressionSyntaxError):
        evaluator.evaluate("")
