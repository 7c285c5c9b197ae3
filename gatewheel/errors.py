"""
Gate Wheel - Error Taxonomy

    InvalidGateError    - gate outside 1..64 (caller misuse)
    InvalidLineError    - line outside 1..6  (caller misuse)
    ConfigurationError  - malformed wheel configuration
    DataIntegrityError  - ground-truth table invariant broken

None of these are transient. Document problems are never raised;
they are collected into a ValidationReport (see docking.py).
"""

import numbers
from typing import Iterable


class GateWheelError(Exception):
    """Base class for all root-system errors."""


class InvalidGateError(GateWheelError, ValueError):
    """Gate number outside 1..64, or not an integer."""

    def __init__(self, gate):
        self.gate = gate
        super().__init__(f"Invalid gate number: {gate!r} (must be 1-64)")


class InvalidLineError(GateWheelError, ValueError):
    """Line number outside 1..6, or not an integer."""

    def __init__(self, line):
        self.line = line
        super().__init__(f"Invalid line number: {line!r} (must be 1-6)")


class ConfigurationError(GateWheelError, ValueError):
    """Malformed WheelConfiguration: bad permutation, token or straddle."""


class DataIntegrityError(GateWheelError):
    """The binary identity table is corrupt. Always fatal."""

    def __init__(self, message: str, problems: Iterable[str] = ()):
        self.problems = list(problems)
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


def require_gate(gate) -> int:
    """Gate as an int. InvalidGateError unless it is an integer in 1..64."""
    if isinstance(gate, bool) or not isinstance(gate, numbers.Integral) or not 1 <= gate <= 64:
        raise InvalidGateError(gate)
    return int(gate)


def require_line(line) -> int:
    """Line as an int. InvalidLineError unless it is an integer in 1..6."""
    if isinstance(line, bool) or not isinstance(line, numbers.Integral) or not 1 <= line <= 6:
        raise InvalidLineError(line)
    return int(line)
