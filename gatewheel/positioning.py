"""
Gate Wheel - Positioning Algorithm

The DOCKING STATION for every knowledge system.
Pure functions over two inputs:

    BinaryIdentityTable  → binary, quarter, face, trigrams, codon, opposite, polarity
    WheelConfiguration   → wheel index, line position, base / visual angle

Derivations (tables in constants.py):

    Quarter   bits[0:2]              11 Mutation · 10 Initiation · 01 Duality · 00 Civilisation
    Face      bits[0:2] + bits[2:4]  each pair → A/U/C/G, 16 two-letter codes → 16 names
    Trigrams  lower bits[0:3]        lines 1-3 (bottom)
              upper bits[3:6]        lines 4-6 (top)
    Codon     three 2-bit groups     → three letters
    Opposite  bitwise complement     → the gate owning it

get_docking_data() is the one entry point consumers should use.

Results are frozen. An optional cache keyed by (gate, line, configuration
identity) holds them; turning it off changes nothing but speed.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .binary_identity import BinaryIdentityTable, complement, load_binary_table
from .constants import (
    GATE_RANGE, LINE_RANGE,
    QUARTER_MAP, QUARTER_NAMES,
    BIGRAM_LETTERS,
    FACE_MAP, FACE_NAMES,
    TRIGRAM_MAP, TRIGRAM_NAMES,
    LOWER_TRIGRAM_SLICE, UPPER_TRIGRAM_SLICE,
    TRIGRAM_LOWER, TRIGRAM_UPPER, TRIGRAM_EITHER, TRIGRAM_POSITIONS,
    POLARITY_MAP,
)
from .errors import DataIntegrityError, require_gate, require_line
from .wheel_config import WheelConfiguration

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TrigramPair:
    """Lower = lines 1-3, upper = lines 4-6."""
    lower: str
    upper: str

    def as_tuple(self) -> Tuple[str, str]:
        return (self.lower, self.upper)


@dataclass(frozen=True)
class DockingData:
    """Everything the root system knows about one (gate, line)."""
    gate: int
    line: int

    # Identity
    binary: str
    codon: str
    polarity: str

    # Positioning
    wheel_index: int
    line_position: int
    base_angle: float
    visual_angle: float

    # Derived groupings
    quarter: str
    face: str
    trigrams: TrigramPair
    opposite_gate: int

    def to_dict(self) -> dict:
        """Plain mapping, camelCase keys, for JSON consumers."""
        data = asdict(self)
        return {
            "gate": data["gate"],
            "line": data["line"],
            "binary": data["binary"],
            "codon": data["codon"],
            "polarity": data["polarity"],
            "wheelIndex": data["wheel_index"],
            "linePosition": data["line_position"],
            "baseAngle": data["base_angle"],
            "visualAngle": data["visual_angle"],
            "quarter": data["quarter"],
            "face": data["face"],
            "trigrams": dict(data["trigrams"]),
            "oppositeGate": data["opposite_gate"],
        }


class GroupingKind(Enum):
    """Derived groupings a grouping document can dock into."""
    QUARTER = "quarter"
    FACE = "face"
    LOWER_TRIGRAM = "lower_trigram"
    UPPER_TRIGRAM = "upper_trigram"
    TRIGRAM = "trigram"                 # either position

    @property
    def names(self) -> Tuple[str, ...]:
        if self is GroupingKind.QUARTER:
            return QUARTER_NAMES
        if self is GroupingKind.FACE:
            return FACE_NAMES
        return TRIGRAM_NAMES

    @property
    def cardinality(self) -> int:
        """How many groups this grouping has: 4, 16 or 8."""
        return len(self.names)


# ═══════════════════════════════════════════════════════════════════════════════
# POSITIONING ALGORITHM
# ═══════════════════════════════════════════════════════════════════════════════

class PositioningAlgorithm:
    """
    Derivations over an injected table and configuration.

    Args:
        table: BinaryIdentityTable (default: packaged table)
        config: WheelConfiguration (default: rave-wheel-41-start)
        cache: memoize get_docking_data()
    """

    def __init__(self,
                 table: Optional[BinaryIdentityTable] = None,
                 config: Optional[WheelConfiguration] = None,
                 cache: bool = True):
        self.table = table if table is not None else load_binary_table()
        self.config = config if config is not None else WheelConfiguration()
        self._cache: Optional[Dict[tuple, DockingData]] = {} if cache else None
        self._cache_lock = threading.Lock()

    def with_config(self, config: WheelConfiguration) -> 'PositioningAlgorithm':
        """Same table, different wheel. The cache is not shared."""
        return PositioningAlgorithm(self.table, config, cache=self._cache is not None)

    # ─────────────────────────────────────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────────────────────────────────────

    def get_binary(self, gate: int) -> str:
        return self.table.get_binary(gate)

    def get_polarity(self, gate: int, line: int) -> str:
        """YANG if the line's bit is 1, YIN otherwise."""
        binary = self.table.get_binary(gate)
        return POLARITY_MAP[binary[require_line(line) - 1]]

    @staticmethod
    def _bigram_letter(pair: str) -> str:
        return BIGRAM_LETTERS[pair]

    def get_codon(self, gate: int) -> str:
        """Three letters from the three 2-bit groups, line 1 first."""
        binary = self.table.get_binary(gate)
        return ''.join(self._bigram_letter(binary[i:i + 2]) for i in (0, 2, 4))

    # ─────────────────────────────────────────────────────────────────────────
    # Groupings
    # ─────────────────────────────────────────────────────────────────────────

    def get_quarter(self, gate: int) -> str:
        return QUARTER_MAP[self.table.get_binary(gate)[0:2]]

    def get_face(self, gate: int) -> str:
        binary = self.table.get_binary(gate)
        code = self._bigram_letter(binary[0:2]) + self._bigram_letter(binary[2:4])
        return FACE_MAP[code]

    def get_trigrams(self, gate: int) -> TrigramPair:
        binary = self.table.get_binary(gate)
        return TrigramPair(
            lower=TRIGRAM_MAP[binary[LOWER_TRIGRAM_SLICE]],
            upper=TRIGRAM_MAP[binary[UPPER_TRIGRAM_SLICE]],
        )

    def get_opposite_gate(self, gate: int) -> int:
        """The gate whose binary is the complement of this one's."""
        inverted = complement(self.table.get_binary(gate))
        try:
            return self.table.gate_for_binary(inverted)
        except DataIntegrityError:
            raise DataIntegrityError(f"Opposite gate not found for gate {gate} ({inverted})")

    # ─────────────────────────────────────────────────────────────────────────
    # Group queries
    # ─────────────────────────────────────────────────────────────────────────

    def gates_in_quarter(self, quarter: str) -> List[int]:
        return [g for g in GATE_RANGE if self.get_quarter(g) == quarter]

    def gates_in_face(self, face: str) -> List[int]:
        return [g for g in GATE_RANGE if self.get_face(g) == face]

    def gates_with_trigram(self, trigram: str, position: str = TRIGRAM_EITHER) -> List[int]:
        """Gates carrying a trigram as lower, upper, or either."""
        if position not in TRIGRAM_POSITIONS:
            raise ValueError(f"Trigram position must be one of {TRIGRAM_POSITIONS}, got {position!r}")
        gates = []
        for gate in GATE_RANGE:
            pair = self.get_trigrams(gate)
            if position == TRIGRAM_LOWER and pair.lower == trigram:
                gates.append(gate)
            elif position == TRIGRAM_UPPER and pair.upper == trigram:
                gates.append(gate)
            elif position == TRIGRAM_EITHER and trigram in pair.as_tuple():
                gates.append(gate)
        return gates

    def group_members(self, kind: GroupingKind) -> Dict[str, List[int]]:
        """Every group of a grouping with its derived gates (ascending)."""
        kind = GroupingKind(kind)
        if kind is GroupingKind.QUARTER:
            return {name: self.gates_in_quarter(name) for name in kind.names}
        if kind is GroupingKind.FACE:
            return {name: self.gates_in_face(name) for name in kind.names}
        position = {
            GroupingKind.LOWER_TRIGRAM: TRIGRAM_LOWER,
            GroupingKind.UPPER_TRIGRAM: TRIGRAM_UPPER,
            GroupingKind.TRIGRAM: TRIGRAM_EITHER,
        }[kind]
        return {name: self.gates_with_trigram(name, position) for name in kind.names}

    # ─────────────────────────────────────────────────────────────────────────
    # Docking
    # ─────────────────────────────────────────────────────────────────────────

    def get_wheel_index(self, gate: int) -> int:
        return self.config.get_wheel_index(gate)

    def get_angle(self, gate: int, line: int = 1):
        return self.config.get_angle(gate, line)

    def get_docking_data(self, gate: int, line: int = 1) -> DockingData:
        """Complete root data for one line. The public entry point."""
        gate = require_gate(gate)
        line = require_line(line)

        key = (gate, line, self.config.identity)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        angle = self.config.get_angle(gate, line)
        data = DockingData(
            gate=gate,
            line=line,
            binary=self.table.get_binary(gate),
            codon=self.get_codon(gate),
            polarity=self.get_polarity(gate, line),
            wheel_index=angle.wheel_index,
            line_position=angle.line_position,
            base_angle=angle.base_angle,
            visual_angle=angle.visual_angle,
            quarter=self.get_quarter(gate),
            face=self.get_face(gate),
            trigrams=self.get_trigrams(gate),
            opposite_gate=self.get_opposite_gate(gate),
        )

        if self._cache is not None:
            with self._cache_lock:
                self._cache.setdefault(key, data)
                data = self._cache[key]
            logger.debug(f"Docking data cached for {gate}.{line}")
        return data

    def all_docking_data(self) -> List[DockingData]:
        """All 384 lines, in gate then line order."""
        return [self.get_docking_data(g, l) for g in GATE_RANGE for l in LINE_RANGE]

    def clear_cache(self):
        if self._cache is not None:
            with self._cache_lock:
                self._cache.clear()
