"""Punto de entrada de la calculadora científica (consola)."""

import argparse
import logging
import sys

from calculator_engine import CalculatorEngine
from calculator_session import CalculatorSession
from formula_evaluator import DEFAULT_MAX_FACTORIAL


PROMPT = "> "
ERROR_PREFIX = "Error: "

HELP_TEXT = """\
Escribe una expresión y pulsa Enter. Comandos:
  :m+  suma el resultado a la memoria     :mr  inserta la memoria
  :m-  resta el resultado de la memoria   :mc  borra la memoria
  :hist  muestra el historial             :deg / :rad  modo angular
  :q  salir"""


def build_engine(backend: str, max_factorial: int) -> CalculatorEngine:
    if backend == "mpmath":
        from mpmath_provider import MPMathProvider

        return CalculatorEngine(provider=MPMathProvider(), max_factorial=max_factorial)
    return CalculatorEngine(max_factorial=max_factorial)


def describe(session: CalculatorSession, expression: str, result) -> str:
    if result.ok:
        return f"{expression} = {session.engine.format_result(result.value)}"
    return f"{expression} = {session.display} ({result.kind}: {result.error})"


def run_expressions(session: CalculatorSession, expressions) -> int:
    status = 0
    for expression in expressions:
        session.clear()
        session.insert(expression)
        result = session.equals()
        if result is None:
            continue
        print(describe(session, expression, result))
        if not result.ok:
            status = 1
    return status


def run_command(session: CalculatorSession, command: str) -> bool:
    """Ejecuta un comando ':'; devuelve False para terminar el bucle."""
    if command == ":q":
        return False
    if command == ":mr":
        session.memory_recall()
        print(session.display)
    elif command == ":mc":
        session.memory_clear()
        print("Memoria borrada")
    elif command in (":m+", ":m-"):
        action = session.memory_add if command == ":m+" else session.memory_subtract
        result = action()
        if result is not None and not result.ok:
            print(f"{ERROR_PREFIX}{result.kind}: {result.error}")
        print(f"M = {session.engine.format_result(session.memory)}")
    elif command == ":hist":
        for entry in session.history:
            print(f"  {entry}")
    elif command in (":deg", ":rad"):
        session.engine.angle_mode = command[1:]
        print(f"Modo {session.engine.angle_mode.upper()}")
    else:
        print(HELP_TEXT)
    return True


def interactive(session: CalculatorSession):
    print(HELP_TEXT)
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return

        line = line.strip()
        if not line:
            continue
        if line.startswith(":"):
            if not run_command(session, line):
                return
            continue

        # Las líneas que empiezan con operador continúan el resultado previo.
        if line[0] in "+*/^%!" and session.last_result is not None:
            session.insert(line)
        else:
            session.clear()
            session.insert(line)

        expression = session.expression
        result = session.equals()
        if result is not None:
            print(describe(session, expression, result))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="calculadora",
        description="Calculadora científica de consola.",
    )
    parser.add_argument("expressions", nargs="*", help="expresiones a evaluar")
    parser.add_argument("--backend", choices=("python", "mpmath"), default="python",
                        help="proveedor de funciones matemáticas")
    parser.add_argument("--deg", action="store_true",
                        help="funciones trigonométricas en grados")
    parser.add_argument("--max-factorial", type=int, default=DEFAULT_MAX_FACTORIAL,
                        help="mayor argumento admitido por '!'")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="muestra el registro de depuración")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(args.backend, args.max_factorial)
    if args.deg:
        engine.angle_mode = "deg"
    session = CalculatorSession(engine)

    if args.expressions:
        return run_expressions(session, args.expressions)

    interactive(session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
