import os
from dataclasses import dataclass


def _int_from_env(name: str, default: int | None) -> int | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    if val.strip().lower() == "none":
        return None
    try:
        return int(val)
    except ValueError:
        return default


def _float_from_env(name: str, default: float | None) -> float | None:
    """Return a floating-point value parsed from the environment."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    if val.strip().lower() == "none":
        return None
    try:
        return float(val)
    except ValueError:
        return default


def _bool_from_env(name: str, default: bool) -> bool:
    """Return a boolean value parsed from the environment."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    val = val.strip().lower()
    if val in {"1", "true", "yes", "on"}:
        return True
    if val in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass
class Config:
    """Runtime configuration defaults for phasepoly.

    Values may be overridden via environment variables or by supplying
    explicit arguments to :func:`compile_circuit` and the command line.
    ``None`` budgets are unbounded.
    """

    split_iters: int = _int_from_env("PHASEPOLY_SPLIT_ITERS", 10000)
    ancilla_budget: int | None = _int_from_env("PHASEPOLY_ANCILLA_BUDGET", None)
    qubit_budget: int | None = _int_from_env("PHASEPOLY_QUBIT_BUDGET", None)
    gadgets: bool = _bool_from_env("PHASEPOLY_GADGETS", False)
    seed: int | None = _int_from_env("PHASEPOLY_SEED", None)
    workers: int = _int_from_env("PHASEPOLY_WORKERS", 1)
    feynver: str = os.getenv("PHASEPOLY_FEYNVER", "feynver")
    verify_timeout: float | None = _float_from_env("PHASEPOLY_VERIFY_TIMEOUT", None)


# Global configuration instance used when modules import ``phasepoly.config``.
DEFAULT = Config()


def from_env() -> Config:
    """Return a :class:`Config` freshly read from the current environment.

    Class-level defaults are evaluated once at import time; this helper
    re-reads the variables so that late changes (for example in tests) are
    honoured.
    """

    return Config(
        split_iters=_int_from_env("PHASEPOLY_SPLIT_ITERS", 10000),
        ancilla_budget=_int_from_env("PHASEPOLY_ANCILLA_BUDGET", None),
        qubit_budget=_int_from_env("PHASEPOLY_QUBIT_BUDGET", None),
        gadgets=_bool_from_env("PHASEPOLY_GADGETS", False),
        seed=_int_from_env("PHASEPOLY_SEED", None),
        workers=_int_from_env("PHASEPOLY_WORKERS", 1) or 1,
        feynver=os.getenv("PHASEPOLY_FEYNVER", "feynver"),
        verify_timeout=_float_from_env("PHASEPOLY_VERIFY_TIMEOUT", None),
    )
