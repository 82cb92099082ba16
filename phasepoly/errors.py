"""Exception types raised by phasepoly."""

from __future__ import annotations


class PhasePolyError(Exception):
    """Base class for recoverable failures on a single input."""


class ParseError(PhasePolyError, ValueError):
    """Raised when circuit text cannot be translated into a :class:`Circuit`.

    Attributes
    ----------
    line:
        One-based line number of the offending line when known.
    source:
        Text of the offending line when known.
    """

    def __init__(self, message: str, *, line: int | None = None, source: str | None = None):
        self.line = line
        self.source = source
        if line is not None:
            message = f"line {line}: {message}"
            if source is not None:
                message = f"{message} in {source.strip()!r}"
        super().__init__(message)


class ShapeError(PhasePolyError, ValueError):
    """Raised when a matrix or qubit mapping does not fit the working matrix."""


class SignatureMismatchError(PhasePolyError):
    """Raised when two synthesis matrices have different signature tensors."""


class ExternalToolError(PhasePolyError, RuntimeError):
    """Raised when an optional external pass fails."""


__all__ = [
    "PhasePolyError",
    "ParseError",
    "ShapeError",
    "SignatureMismatchError",
    "ExternalToolError",
]
