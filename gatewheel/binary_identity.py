"""
Gate Wheel - Binary Identity Table

The ground truth. Gate number → 6-bit string.

Hand-curated, not computed. Verified once when the table is built:

    - exactly 64 entries, keyed 1..64
    - every value is 6 characters over {0, 1}
    - all 64 values distinct

After construction the table never changes. Pass it into the objects
that need it; several tables (a test fixture, the packaged one) can
live side by side.
"""

import json
import logging
import numbers
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .constants import (
    TOTAL_GATES, BINARY_LENGTH, GATE_RANGE,
    BINARY_IDENTITY_FILE, get_data_path,
)
from .errors import DataIntegrityError, require_gate

logger = logging.getLogger(__name__)


def complement(binary: str) -> str:
    """Bitwise complement of a binary string: '110100' → '001011'."""
    return binary.translate(str.maketrans('01', '10'))


def _is_gate_key(key) -> bool:
    return isinstance(key, int) and not isinstance(key, bool) and key in GATE_RANGE


def _normalize_key(key):
    """Integer keys and numeric strings name a gate. Anything else is kept and rejected."""
    if isinstance(key, str):
        try:
            return int(key)
        except ValueError:
            return key
    if isinstance(key, numbers.Integral) and not isinstance(key, bool):
        return int(key)
    return key


def _integrity_problems(gates: Mapping, collisions: Tuple = ()) -> list:
    """Every broken table invariant, as human-readable strings."""
    problems = []
    if collisions:
        problems.append(f"keys name the same gate more than once {list(collisions)}")

    if len(gates) != TOTAL_GATES:
        problems.append(f"expected {TOTAL_GATES} entries, found {len(gates)}")

    valid = sorted(g for g in gates if _is_gate_key(g))
    missing = [g for g in GATE_RANGE if g not in valid]
    if missing:
        problems.append(f"missing gates {missing}")

    extra = sorted(repr(g) for g in gates if not _is_gate_key(g))
    if extra:
        problems.append(f"unexpected keys {extra}")

    owners: Dict[str, int] = {}
    for gate in valid:
        binary = gates[gate]
        if not isinstance(binary, str) or len(binary) != BINARY_LENGTH \
                or set(binary) - {'0', '1'}:
            problems.append(f"gate {gate} has malformed binary {binary!r}")
            continue
        if binary in owners:
            problems.append(f"gates {owners[binary]} and {gate} share binary {binary}")
        else:
            owners[binary] = gate

    return problems


class BinaryIdentityTable:
    """
    Immutable gate → binary lookup with a reverse index.

    Construction raises DataIntegrityError listing every problem found,
    not just the first.
    """

    def __init__(self, gates: Mapping):
        normalized = {}
        collisions = []
        for key, binary in gates.items():
            gate = _normalize_key(key)
            if gate in normalized:
                collisions.append(gate)
            normalized[gate] = binary

        problems = _integrity_problems(normalized, tuple(collisions))
        if problems:
            raise DataIntegrityError("Binary identity table failed verification", problems)

        self._gates = MappingProxyType(dict(sorted(normalized.items())))
        self._owners = MappingProxyType({b: g for g, b in self._gates.items()})
        logger.debug(f"Binary identity table verified ({len(self._gates)} gates)")

    # ─────────────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────────────

    def get_binary(self, gate: int) -> str:
        """6-character binary for a gate. Index 0 = line 1 (bottom)."""
        return self._gates[require_gate(gate)]

    def gate_for_binary(self, binary: str) -> int:
        """Reverse lookup: which gate owns this binary."""
        gate = self._owners.get(binary)
        if gate is None:
            raise DataIntegrityError(f"No gate owns binary {binary!r}")
        return gate

    def bits(self, gate: int) -> Tuple[int, ...]:
        """Binary as a tuple of ints, line 1 first."""
        return tuple(int(b) for b in self.get_binary(gate))

    # ─────────────────────────────────────────────────────────────────────────
    # Mapping behaviour
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def gates(self) -> Mapping[int, str]:
        """Read-only view of the whole table."""
        return self._gates

    def items(self):
        return self._gates.items()

    def __len__(self) -> int:
        return len(self._gates)

    def __iter__(self) -> Iterator[int]:
        return iter(self._gates)

    def __contains__(self, gate) -> bool:
        return gate in self._gates

    def __eq__(self, other) -> bool:
        if not isinstance(other, BinaryIdentityTable):
            return NotImplemented
        return dict(self._gates) == dict(other._gates)

    def __hash__(self) -> int:
        return hash(tuple(self._gates.items()))

    def __repr__(self) -> str:
        return f"BinaryIdentityTable({len(self._gates)} gates)"

    def to_dict(self) -> dict:
        """Serializable form, matching the packaged JSON layout."""
        return {"gates": {str(g): b for g, b in self._gates.items()}}


def load_binary_table(path: Optional[str] = None) -> BinaryIdentityTable:
    """
    Load and verify a binary identity table from JSON.

    Accepts {"gates": {"1": "111111", ...}} or {"gates": {"1": {"binary": ...}}}.
    Defaults to the packaged gatewheel/data/binary_identity.json.
    """
    if path is None:
        path = get_data_path(BINARY_IDENTITY_FILE)

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    gates = data.get("gates", data) if isinstance(data, dict) else data
    if not isinstance(gates, dict):
        raise DataIntegrityError(f"Binary identity file {path} has no 'gates' mapping")

    flattened = {}
    for key, value in gates.items():
        if isinstance(value, dict):
            value = value.get("binary")
        flattened[key] = value

    table = BinaryIdentityTable(flattened)
    logger.info(f"Loaded binary identity table from {path}")
    return table
