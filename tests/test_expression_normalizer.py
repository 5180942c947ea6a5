import pytest

from calculator_errors import InvalidCharacterError
from expression_normalizer import ExpressionNormalizer, normalize


def test_visual_glyphs_become_ascii():
    assert normalize("3×4÷2−1") == "3*4/2-1"
    assert normalize("√(9)") == "sqrt(9)"
    assert normalize("2×π") == "2*(3.141592653589793)"


def test_surrounding_whitespace_is_stripped():
    assert normalize("  1 + 2 ") == "1 + 2"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10%", "(10/100)"),
        ("50%+1", "(50/100)+1"),
        ("12.5%*2", "(12.5/100)*2"),
        (".5%", "(.5/100)"),
        ("(2+3)%", "(2+3)%"),
        ("log10%", "log10%"),
    ],
)
def test_percent_binds_to_numeric_literal_only(raw, expected):
    assert normalize(raw) == expected


def test_constants_are_replaced_on_word_boundaries():
    assert normalize("pi") == "(3.141592653589793)"
    assert normalize("e") == "(2.718281828459045)"
    assert normalize("2*pi+e") == "2*(3.141592653589793)+(2.718281828459045)"
    assert normalize("pin") == "pin"
    assert normalize("exp") == "exp"
    assert normalize("1e5") == "1e5"


def test_power_has_a_single_spelling():
    assert normalize("2**3") == "2^3"
    assert normalize("2^3") == "2^3"


def test_function_openers_are_collapsed():
    assert normalize("sin (0)") == "sin(0)"
    assert normalize("log10   (100)") == "log10(100)"
    assert normalize("foo (1)") == "foo (1)"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5!", "factorial(5)"),
        ("2.5!", "factorial(2.5)"),
        ("(3+2)!", "factorial((3+2))"),
        ("(3!)!", "factorial((factorial(3)))"),
        ("3!!", "factorial(factorial(3))"),
        ("sqrt(9)!", "factorial(sqrt(9))"),
        ("-1!", "factorial(-1)"),
        ("- 1!", "factorial(- 1)"),
        ("2*-3!", "2*-factorial(3)"),
        ("2*(-3!)", "2*(-factorial(3))"),
        ("2^-1!", "2^-factorial(1)"),
        ("2-1!", "2-factorial(1)"),
        ("1+2!*3", "1+factorial(2)*3"),
    ],
)
def test_factorial_is_rewritten_innermost_first(raw, expected):
    assert normalize(raw) == expected


def test_factorial_without_operand_is_left_for_the_parser():
    assert normalize("!5") == "!5"
    assert normalize("5 !") == "5 !"
    assert normalize("(1))!") == "(1))!"


def test_factorial_pass_terminates_on_deep_nesting():
    raw = "(" * 300 + "1" + ")" * 300 + "!"
    assert normalize(raw) == "factorial(" + raw[:-1] + ")"


@pytest.mark.parametrize(
    "raw, char, position",
    [
        ("2$3", "$", 1),
        ("__import__('os')", "'", 11),
        ("1;2", ";", 1),
        ("x²", "²", 1),
        ("[1]", "[", 0),
    ],
)
def test_disallowed_characters_are_rejected(raw, char, position):
    with pytest.raises(InvalidCharacterError) as info:
        normalize(raw)
    assert char in info.value.message
    assert info.value.position == position


@pytest.mark.parametrize(
    "raw",
    [
        "2+3*4",
        "10%+pi",
        "(3!)!",
        "-1!",
        "sin (e)^2",
        "2**3**2",
        "sqrt(16)/ln(e)",
        "!!",
        "",
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


def test_custom_constants():
    normalizer = ExpressionNormalizer(constants={"tau": 6.283185307179586})
    assert normalizer.normalize("tau/2") == "(6.283185307179586)/2"
    assert normalizer.normalize("pi") == "pi"
