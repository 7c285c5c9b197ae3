"""
Gate Wheel - Wheel Configuration

Where each gate sits on the circle, and which way is north.

Placement:
    wheel_index   = position of the gate in the sequence    (0..63)
    line_position = wheel_index × 6 + (line − 1)             (0..383)
    base_angle    = line_position × 0.9375°
    visual_angle  = (base_angle + rotation_offset) mod 360

Direction: two separate questions, never merged.

    1. Mathematical sense. Angles ALWAYS grow along the sequence.
       Nothing here is configurable.

    2. Visual sense. Where those angles land on a north-up dial.
       The cardinal progression names the directions met at visual
       0°, 90°, 180°, 270°. VisualDirection says whether walking that
       progression turns CLOCKWISE or COUNTER_CLOCKWISE on the dial.

    Default NWSE: North at 0°, West at 90°, South at 180°, East at 270°.
    On the dial that is 12 → 9 → 6 → 3, i.e. COUNTER_CLOCKWISE.

compass_bearing() converts a visual angle into a dial bearing (clockwise
from north) so renderers never have to guess.

North anchor:
    north_position names the gate (or adjacent pair of gates) that should
    sit on north. For a straddle "10|11" the boundary between the two
    gates is the anchor: the first line of whichever gate comes later in
    the sequence. With the default rotation of 33.75° gate 10 line 1
    lands exactly on 0°.
"""

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import (
    TOTAL_GATES, TOTAL_LINES, LINES_PER_GATE, GATE_RANGE,
    FULL_CIRCLE, DEGREES_PER_LINE, ANGLE_TOLERANCE,
    DEFAULT_ROTATION_OFFSET, DEFAULT_CARDINAL_PROGRESSION,
    DEFAULT_NORTH_POSITION, DEFAULT_PRESET,
    CARDINAL_PROGRESSIONS, CLOCKWISE_PROGRESSIONS,
    CARDINAL_BEARINGS, GATE_SEQUENCE_FILE, get_data_path,
)
from .errors import ConfigurationError, require_gate, require_line

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class VisualDirection(Enum):
    """How increasing angle turns on a north-up dial."""
    CLOCKWISE = "clockwise"                  # 12 → 3 → 6 → 9
    COUNTER_CLOCKWISE = "counter-clockwise"  # 12 → 9 → 6 → 3

    @classmethod
    def for_progression(cls, progression: str) -> 'VisualDirection':
        if progression in CLOCKWISE_PROGRESSIONS:
            return cls.CLOCKWISE
        return cls.COUNTER_CLOCKWISE


# ═══════════════════════════════════════════════════════════════════════════════
# VALUE TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NorthPosition:
    """
    The gate, or adjacent pair of gates, aligned to north.

    Written "10|11" for a straddle, "41" for a single gate.
    """
    gates: Tuple[int, ...]

    @property
    def is_straddle(self) -> bool:
        return len(self.gates) == 2

    @staticmethod
    def parse(value) -> 'NorthPosition':
        """Accept "10|11", 41, (10, 11), [10, 11] or a NorthPosition."""
        if isinstance(value, NorthPosition):
            return value
        if isinstance(value, str):
            parts = [p.strip() for p in value.split('|')]
            try:
                gates = tuple(int(p) for p in parts)
            except ValueError:
                raise ConfigurationError(f"Unreadable north position: {value!r}")
        elif isinstance(value, int) and not isinstance(value, bool):
            gates = (value,)
        elif isinstance(value, (tuple, list)):
            gates = tuple(value)
        else:
            raise ConfigurationError(f"Unreadable north position: {value!r}")

        if len(gates) not in (1, 2):
            raise ConfigurationError(
                f"North position must name one gate or a straddled pair, got {value!r}")
        for gate in gates:
            try:
                require_gate(gate)
            except ValueError:
                raise ConfigurationError(f"North position names invalid gate {gate!r}")
        if len(set(gates)) != len(gates):
            raise ConfigurationError(f"North straddle repeats gate {gates[0]}")
        return NorthPosition(gates=tuple(int(g) for g in gates))

    def __str__(self) -> str:
        return '|'.join(str(g) for g in self.gates)


@dataclass(frozen=True)
class WheelAngle:
    """Placement of one line on the wheel."""
    wheel_index: int
    line_position: int
    base_angle: float
    visual_angle: float


# ═══════════════════════════════════════════════════════════════════════════════
# SEQUENCE LOADING / CHECKING
# ═══════════════════════════════════════════════════════════════════════════════

def load_gate_sequence(path: Optional[str] = None) -> Tuple[int, ...]:
    """Read a {"sequence": [...]} file. Defaults to the packaged sequence."""
    if path is None:
        path = get_data_path(GATE_SEQUENCE_FILE)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    sequence = data["sequence"] if isinstance(data, dict) else data
    logger.debug(f"Loaded gate sequence from {path}")
    return tuple(sequence)


def sequence_problems(sequence: Sequence) -> List[str]:
    """Everything that stops a sequence being a permutation of 1..64."""
    problems = []
    if len(sequence) != TOTAL_GATES:
        problems.append(f"expected {TOTAL_GATES} gates, found {len(sequence)}")

    valid = []
    invalid = []
    for gate in sequence:
        if isinstance(gate, bool) or not isinstance(gate, int) or gate not in GATE_RANGE:
            invalid.append(gate)
        else:
            valid.append(gate)
    if invalid:
        problems.append(f"invalid entries {invalid}")

    # Only valid gates take part; a nested list would not even hash.
    seen = set()
    duplicates = []
    for gate in valid:
        if gate in seen and gate not in duplicates:
            duplicates.append(gate)
        seen.add(gate)
    if duplicates:
        problems.append(f"duplicates {duplicates}")

    missing = [g for g in GATE_RANGE if g not in seen]
    if missing:
        problems.append(f"missing {missing}")
    return problems


def angle_difference(a: float, b: float) -> float:
    """Signed smallest difference a − b, in (−180, 180]."""
    diff = (a - b) % FULL_CIRCLE
    if diff > FULL_CIRCLE / 2:
        diff -= FULL_CIRCLE
    return diff


# ═══════════════════════════════════════════════════════════════════════════════
# WHEEL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

class WheelConfiguration:
    """
    Sequence + orientation. Immutable once built.

    Args:
        sequence: permutation of 1..64 (default: packaged rave-wheel-41-start)
        rotation_offset: degrees added to every base angle. None derives the
            offset that puts the north anchor on north.
        cardinal_progression: one of the 8 progression tokens
        north_position: "10|11", 41, (10, 11) ...
        visual_direction: optional statement of the dial sense the caller
            expects; rejected if it contradicts the progression.
    """

    def __init__(self,
                 sequence: Optional[Sequence[int]] = None,
                 rotation_offset: Optional[float] = DEFAULT_ROTATION_OFFSET,
                 cardinal_progression: str = DEFAULT_CARDINAL_PROGRESSION,
                 north_position: Union[str, int, Sequence[int], NorthPosition] = DEFAULT_NORTH_POSITION,
                 visual_direction: Union[None, str, VisualDirection] = None):

        if sequence is None:
            sequence = load_gate_sequence()
        if isinstance(sequence, (str, bytes)) or not isinstance(sequence, Iterable):
            raise ConfigurationError(f"Sequence must be a list of gates, got {sequence!r}")
        sequence = tuple(sequence)
        problems = sequence_problems(sequence)
        if problems:
            raise ConfigurationError(
                "Sequence is not a permutation of 1..64: " + "; ".join(problems))
        self._sequence = sequence
        self._index: Dict[int, int] = {g: i for i, g in enumerate(sequence)}

        if not isinstance(cardinal_progression, str) \
                or cardinal_progression.upper() not in CARDINAL_PROGRESSIONS:
            raise ConfigurationError(
                f"Invalid cardinal progression: {cardinal_progression!r} "
                f"(must be one of {', '.join(CARDINAL_PROGRESSIONS)})")
        self._progression = cardinal_progression.upper()
        self._direction = VisualDirection.for_progression(self._progression)

        if visual_direction is not None:
            try:
                stated = VisualDirection(visual_direction)
            except ValueError:
                raise ConfigurationError(f"Unknown visual direction: {visual_direction!r}")
            if stated is not self._direction:
                raise ConfigurationError(
                    f"Cardinal progression {self._progression} turns "
                    f"{self._direction.value} on a north-up dial, not {stated.value}")

        self._north = NorthPosition.parse(north_position)
        if self._north.is_straddle:
            a, b = (self._index[g] for g in self._north.gates)
            if (a - b) % TOTAL_GATES not in (1, TOTAL_GATES - 1):
                raise ConfigurationError(
                    f"North straddle {self._north} is not adjacent in the sequence "
                    f"(wheel indices {a} and {b})")

        if rotation_offset is None:
            rotation_offset = self.rotation_for_north(
                self._sequence, self._north, self._progression)
        try:
            rotation_offset = float(rotation_offset)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Rotation offset must be a number, got {rotation_offset!r}")
        if not math.isfinite(rotation_offset):
            raise ConfigurationError(f"Rotation offset must be finite, got {rotation_offset}")
        self._rotation = rotation_offset

        misalignment = self.north_misalignment
        if abs(misalignment) > ANGLE_TOLERANCE:
            logger.warning(
                f"North anchor {self._north} sits {misalignment:+.4f}° away from north "
                f"(rotation {self._rotation}°, progression {self._progression})")

        logger.debug(f"Wheel configured: {self!r}")

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def sequence(self) -> Tuple[int, ...]:
        return self._sequence

    @property
    def rotation_offset(self) -> float:
        return self._rotation

    @property
    def cardinal_progression(self) -> str:
        return self._progression

    @property
    def north_position(self) -> NorthPosition:
        return self._north

    @property
    def visual_direction(self) -> VisualDirection:
        return self._direction

    @property
    def identity(self) -> tuple:
        """Hashable key covering everything that affects a derived angle."""
        return (self._sequence, self._rotation, self._progression, self._north.gates)

    def __eq__(self, other) -> bool:
        if not isinstance(other, WheelConfiguration):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        return (f"WheelConfiguration(start={self._sequence[0]}, "
                f"rotation={self._rotation}, progression={self._progression}, "
                f"north={self._north}, direction={self._direction.value})")

    # ─────────────────────────────────────────────────────────────────────────
    # Placement
    # ─────────────────────────────────────────────────────────────────────────

    def get_wheel_index(self, gate: int) -> int:
        """Position of a gate in the sequence, 0..63."""
        gate = require_gate(gate)
        index = self._index.get(gate)
        if index is None:
            raise ConfigurationError(f"Gate {gate} not found in sequence")
        return index

    def gate_at(self, wheel_index: int) -> int:
        """Gate at a wheel index (wraps around)."""
        return self._sequence[wheel_index % TOTAL_GATES]

    def get_angle(self, gate: int, line: int = 1) -> WheelAngle:
        """Base and visual angle for a line."""
        wheel_index = self.get_wheel_index(gate)
        line = require_line(line)
        line_position = wheel_index * LINES_PER_GATE + (line - 1)
        base_angle = line_position * DEGREES_PER_LINE
        visual_angle = (base_angle + self._rotation) % FULL_CIRCLE
        return WheelAngle(
            wheel_index=wheel_index,
            line_position=line_position,
            base_angle=base_angle,
            visual_angle=visual_angle,
        )

    def line_angles(self) -> np.ndarray:
        """Visual angle of all 384 line positions, in wheel order."""
        base = np.arange(TOTAL_LINES, dtype=float) * DEGREES_PER_LINE
        return np.mod(base + self._rotation, FULL_CIRCLE)

    def line_layout(self) -> List[Tuple[int, int]]:
        """(gate, line) for all 384 line positions, in wheel order."""
        return [(gate, line) for gate in self._sequence
                for line in range(1, LINES_PER_GATE + 1)]

    def locate(self, visual_angle: float) -> Tuple[int, int]:
        """The (gate, line) whose arc contains a visual angle."""
        base = (visual_angle - self._rotation) % FULL_CIRCLE
        # snap values a hair under a boundary onto it
        position = int(math.floor(base / DEGREES_PER_LINE + ANGLE_TOLERANCE)) % TOTAL_LINES
        gate = self._sequence[position // LINES_PER_GATE]
        return gate, position % LINES_PER_GATE + 1

    # ─────────────────────────────────────────────────────────────────────────
    # Orientation
    # ─────────────────────────────────────────────────────────────────────────

    def cardinal_angle(self, direction: str) -> float:
        """Visual angle at which a cardinal direction (N/E/S/W) sits."""
        key = direction[:1].upper() if isinstance(direction, str) else None
        if key not in CARDINAL_BEARINGS:
            raise ValueError(f"Unknown cardinal direction: {direction!r}")
        return self._progression.index(key) * 90.0

    def cardinal_at(self, visual_angle: float) -> str:
        """Nearest cardinal direction to a visual angle."""
        sector = int(((visual_angle % FULL_CIRCLE) + 45.0) // 90.0) % 4
        return self._progression[sector]

    def compass_bearing(self, visual_angle: float) -> float:
        """
        Dial bearing (clockwise from north) of a visual angle.

        For a COUNTER_CLOCKWISE wheel the bearing runs against the angle:
        NWSE visual 90° (West) → bearing 270°.
        """
        origin = CARDINAL_BEARINGS[self._progression[0]]
        if self._direction is VisualDirection.CLOCKWISE:
            return (origin + visual_angle) % FULL_CIRCLE
        return (origin - visual_angle) % FULL_CIRCLE

    def visual_angle_for_bearing(self, bearing: float) -> float:
        """Inverse of compass_bearing()."""
        origin = CARDINAL_BEARINGS[self._progression[0]]
        if self._direction is VisualDirection.CLOCKWISE:
            return (bearing - origin) % FULL_CIRCLE
        return (origin - bearing) % FULL_CIRCLE

    @staticmethod
    def _anchor_index(index: Dict[int, int], north: NorthPosition) -> int:
        if not north.is_straddle:
            return index[north.gates[0]]
        a, b = (index[g] for g in north.gates)
        # the later of two neighbours; (63, 0) wraps to 0
        return b if (a + 1) % TOTAL_GATES == b else a

    @staticmethod
    def rotation_for_north(sequence: Sequence[int],
                           north_position=DEFAULT_NORTH_POSITION,
                           cardinal_progression: str = DEFAULT_CARDINAL_PROGRESSION) -> float:
        """Rotation offset that puts the north anchor exactly on north."""
        index = {g: i for i, g in enumerate(sequence)}
        north = NorthPosition.parse(north_position)
        missing = [g for g in north.gates if g not in index]
        if missing:
            raise ConfigurationError(f"North gates {missing} not in sequence")
        anchor = WheelConfiguration._anchor_index(index, north)
        north_angle = cardinal_progression.upper().index('N') * 90.0
        return (north_angle - anchor * LINES_PER_GATE * DEGREES_PER_LINE) % FULL_CIRCLE

    @property
    def north_anchor_angle(self) -> float:
        """Visual angle of the north anchor boundary."""
        anchor = self._anchor_index(self._index, self._north)
        return (anchor * LINES_PER_GATE * DEGREES_PER_LINE + self._rotation) % FULL_CIRCLE

    @property
    def north_misalignment(self) -> float:
        """Signed degrees between the north anchor and north. 0 when aligned."""
        return angle_difference(self.north_anchor_angle, self.cardinal_angle('N'))

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "sequence": list(self._sequence),
            "rotationOffset": self._rotation,
            "cardinalProgression": self._progression,
            "northPosition": str(self._north),
            "visualDirection": self._direction.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WheelConfiguration':
        """
        Build from a mapping. Keys may be camelCase (JSON files) or
        snake_case. A "preset" key supplies defaults for missing keys.
        """
        aliases = {
            "rotationOffset": "rotation_offset",
            "cardinalProgression": "cardinal_progression",
            "northPosition": "north_position",
            "visualDirection": "visual_direction",
            "customSequence": "sequence",
        }
        options = {}
        preset = data.get("preset")
        if preset is not None:
            options.update(_preset_options(preset))

        for key, value in data.items():
            if key == "preset":
                continue
            name = aliases.get(key, key)
            if name not in ("sequence", "rotation_offset", "cardinal_progression",
                            "north_position", "visual_direction"):
                raise ConfigurationError(f"Unknown configuration option: {key!r}")
            options[name] = value
        return cls(**options)


# ═══════════════════════════════════════════════════════════════════════════════
# PRESETS
# ═══════════════════════════════════════════════════════════════════════════════

PRESETS = {
    # Gate 41 first, 11|10 boundary on north, counter-clockwise on the dial
    "rave-wheel-41-start": {
        "rotation_offset": DEFAULT_ROTATION_OFFSET,
        "cardinal_progression": DEFAULT_CARDINAL_PROGRESSION,
        "north_position": DEFAULT_NORTH_POSITION,
    },
    # Same sequence with no rotation: gate 41 line 1 on north
    "unrotated": {
        "rotation_offset": 0.0,
        "cardinal_progression": DEFAULT_CARDINAL_PROGRESSION,
        "north_position": 41,
    },
}


def _preset_options(name: str) -> dict:
    try:
        return dict(PRESETS[name])
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset: {name!r} (available: {', '.join(sorted(PRESETS))})")


def from_preset(name: str = DEFAULT_PRESET) -> WheelConfiguration:
    """Build a named configuration."""
    return WheelConfiguration(**_preset_options(name))


def load_configuration(path: str) -> WheelConfiguration:
    """Build a configuration from a JSON file (see WheelConfiguration.from_dict)."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must hold a JSON object")
    config = WheelConfiguration.from_dict(data)
    logger.info(f"Loaded wheel configuration from {path}: {config!r}")
    return config
