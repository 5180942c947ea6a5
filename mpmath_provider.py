"""Proveedor matemático basado en mpmath con resultados en double.

Cada función se calcula con dígitos de trabajo extra y el resultado se
redondea al float más cercano; la aritmética de la calculadora sigue
siendo de doble precisión.
"""

from __future__ import annotations

try:
    from mpmath import mp
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "mpmath no está instalado. Instala con: pip install mpmath"
    ) from exc


MP_WORKING_DIGITS = 30


class MPMathProvider:
    """Misma interfaz que PythonMathProvider, calculada con mpmath."""

    def __init__(self, working_digits: int = MP_WORKING_DIGITS):
        self._angle_mode = "rad"
        self._working_digits = max(16, working_digits)

    @property
    def angle_mode(self) -> str:
        return self._angle_mode

    @angle_mode.setter
    def angle_mode(self, mode: str):
        if mode not in ("rad", "deg"):
            raise ValueError("El modo debe ser 'rad' o 'deg'")
        self._angle_mode = mode

    @property
    def working_digits(self) -> int:
        return self._working_digits

    @staticmethod
    def _to_float(value) -> float:
        if isinstance(value, mp.mpc):
            if value.imag != 0:
                raise ValueError("El resultado no es un número real")
            value = value.real
        return float(value)

    def _wrap(self, fn, before=None, after=None):
        digits = self._working_digits

        def wrapped(x):
            with mp.workdps(digits):
                value = mp.mpf(x)
                if before is not None:
                    value = before(value)
                result = fn(value)
                if after is not None and not isinstance(result, mp.mpc):
                    result = after(result)
                return self._to_float(result)

        return wrapped

    def _trig(self, fn):
        if self._angle_mode == "deg":
            return self._wrap(fn, before=mp.radians)
        return self._wrap(fn)

    def _inv_trig(self, fn):
        if self._angle_mode == "deg":
            return self._wrap(fn, after=mp.degrees)
        return self._wrap(fn)

    @staticmethod
    def _round_half_up(x):
        return mp.floor(x + mp.mpf("0.5"))

    def build_namespace(self) -> dict:
        with mp.workdps(self._working_digits):
            pi = float(+mp.pi)
            e = float(+mp.e)

        return {
            "sin": self._trig(mp.sin),
            "cos": self._trig(mp.cos),
            "tan": self._trig(mp.tan),
            "asin": self._inv_trig(mp.asin),
            "acos": self._inv_trig(mp.acos),
            "atan": self._inv_trig(mp.atan),
            "sqrt": self._wrap(mp.sqrt),
            "abs": self._wrap(mp.fabs),
            "floor": self._wrap(mp.floor),
            "ceil": self._wrap(mp.ceil),
            "round": self._wrap(self._round_half_up),
            "log10": self._wrap(mp.log10),
            "ln": self._wrap(mp.log),
            "pi": pi,
            "e": e,
        }
