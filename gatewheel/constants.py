"""
Gate Wheel - Constants

Every fixed lookup table of the root system lives here, once.
Derivations import these tables; nothing re-declares them.

════════════════════════════════════════════════════════════════════════════════
THE SPACE
════════════════════════════════════════════════════════════════════════════════

    64 gates × 6 lines = 384 line positions around the wheel
    360° / 384         = 0.9375° per line
    6 × 0.9375°        = 5.625° per gate

════════════════════════════════════════════════════════════════════════════════
BIT ORDER
════════════════════════════════════════════════════════════════════════════════

Binary strings are stored BOTTOM-TO-TOP:

    index 0 = line 1 (bottom)
    index 5 = line 6 (top)

Therefore:

    bits[0:2] → Quarter
    bits[0:4] → Face (two 2-bit groups)
    bits[0:3] → LOWER trigram (lines 1-3)
    bits[3:6] → UPPER trigram (lines 4-6)
    bits[0:6] → Codon (three 2-bit groups)

Swapping lower/upper produces pairings that are internally consistent and
traditionally wrong. The trigram slices below are the only place that
decides it.

════════════════════════════════════════════════════════════════════════════════
ORIENTATION
════════════════════════════════════════════════════════════════════════════════

Angles always grow along the sequence (mathematical sense).
The cardinal progression names the compass direction found at
0°, 90°, 180° and 270° of visual angle:

    NWSE → N at 0°, W at 90°, S at 180°, E at 270°

On a north-up dial NWSE runs COUNTER-CLOCKWISE (12 → 9 → 6 → 3).
Rotations of NESW run CLOCKWISE (12 → 3 → 6 → 9).

════════════════════════════════════════════════════════════════════════════════
"""

import os

# ═══════════════════════════════════════════════════════════════════════════════
# PROJECT PATHS
# ═══════════════════════════════════════════════════════════════════════════════

def get_package_root() -> str:
    """Directory holding the gatewheel package."""
    return os.path.dirname(os.path.abspath(__file__))


def get_data_path(filename: str) -> str:
    """Absolute path to a packaged data file in gatewheel/data/."""
    return os.path.join(get_package_root(), "data", filename)


BINARY_IDENTITY_FILE = "binary_identity.json"
GATE_SEQUENCE_FILE = "gate_sequence.json"
CONNECTIONS_FILE = "connections.json"

# ═══════════════════════════════════════════════════════════════════════════════
# GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════════

TOTAL_GATES = 64
LINES_PER_GATE = 6
TOTAL_LINES = TOTAL_GATES * LINES_PER_GATE       # 384
BINARY_LENGTH = 6

FULL_CIRCLE = 360.0
DEGREES_PER_LINE = FULL_CIRCLE / TOTAL_LINES     # 0.9375
DEGREES_PER_GATE = DEGREES_PER_LINE * LINES_PER_GATE  # 5.625

GATE_RANGE = range(1, TOTAL_GATES + 1)
LINE_RANGE = range(1, LINES_PER_GATE + 1)

# Angles closer than this are treated as equal (north alignment checks)
ANGLE_TOLERANCE = 1e-9

# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT ORIENTATION (rave-wheel-41-start)
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_ROTATION_OFFSET = 33.75        # puts the 11|10 boundary on north
DEFAULT_CARDINAL_PROGRESSION = "NWSE"
DEFAULT_NORTH_POSITION = "10|11"
DEFAULT_PRESET = "rave-wheel-41-start"

# The 8 valid cardinal progressions.
# Each lists the directions met at 0°, 90°, 180°, 270° of visual angle.
CLOCKWISE_PROGRESSIONS = ("NESW", "ESWN", "SWNE", "WNES")
COUNTER_CLOCKWISE_PROGRESSIONS = ("NWSE", "ENWS", "SENW", "WSEN")
CARDINAL_PROGRESSIONS = CLOCKWISE_PROGRESSIONS + COUNTER_CLOCKWISE_PROGRESSIONS

CARDINAL_NAMES = {
    'N': 'North',
    'E': 'East',
    'S': 'South',
    'W': 'West',
}

# Compass bearing of each direction on a north-up dial (clockwise from north)
CARDINAL_BEARINGS = {
    'N': 0.0,
    'E': 90.0,
    'S': 180.0,
    'W': 270.0,
}

# ═══════════════════════════════════════════════════════════════════════════════
# POLARITY
# ═══════════════════════════════════════════════════════════════════════════════

YANG = "YANG"
YIN = "YIN"

POLARITY_MAP = {
    '1': YANG,
    '0': YIN,
}

# ═══════════════════════════════════════════════════════════════════════════════
# QUARTERS: bits[0:2]
# ═══════════════════════════════════════════════════════════════════════════════

QUARTER_MAP = {
    '11': 'Mutation',
    '10': 'Initiation',
    '01': 'Duality',
    '00': 'Civilisation',
}

QUARTER_NAMES = tuple(QUARTER_MAP.values())

# ═══════════════════════════════════════════════════════════════════════════════
# BIGRAM LETTERS: shared by Face and Codon
# ═══════════════════════════════════════════════════════════════════════════════

BIGRAM_LETTERS = {
    '11': 'A',
    '00': 'U',
    '10': 'C',
    '01': 'G',
}

# ═══════════════════════════════════════════════════════════════════════════════
# FACES: bits[0:4] as a two-letter code
# ═══════════════════════════════════════════════════════════════════════════════

FACE_MAP = {
    'AA': 'Hades',
    'AC': 'Prometheus',
    'AG': 'Vishnu',
    'AU': 'Keepers of the Wheel',
    'CA': 'Kali',
    'CC': 'Mitra',
    'CG': 'Michael',
    'CU': 'Janus',
    'GA': 'Minerva',
    'GC': 'Christ',
    'GG': 'Harmonia',
    'GU': 'Thoth',
    'UA': 'Maat',
    'UC': 'Parvati',
    'UG': 'Lakshmi',
    'UU': 'Maia',
}

FACE_NAMES = tuple(FACE_MAP.values())

# ═══════════════════════════════════════════════════════════════════════════════
# TRIGRAMS: bits[0:3] lower, bits[3:6] upper
# ═══════════════════════════════════════════════════════════════════════════════

LOWER_TRIGRAM_SLICE = slice(0, 3)   # lines 1-3
UPPER_TRIGRAM_SLICE = slice(3, 6)   # lines 4-6

TRIGRAM_MAP = {
    '111': 'Heaven',
    '000': 'Earth',
    '100': 'Thunder',
    '010': 'Water',
    '001': 'Mountain',
    '011': 'Wind',
    '101': 'Fire',
    '110': 'Lake',
}

TRIGRAM_NAMES = tuple(TRIGRAM_MAP.values())

TRIGRAM_LOWER = "lower"
TRIGRAM_UPPER = "upper"
TRIGRAM_EITHER = "either"
TRIGRAM_POSITIONS = (TRIGRAM_LOWER, TRIGRAM_UPPER, TRIGRAM_EITHER)

# ═══════════════════════════════════════════════════════════════════════════════
# KNOWLEDGE DOCUMENT CARDINALITIES
# ═══════════════════════════════════════════════════════════════════════════════

GATE_DOCUMENT_ENTRIES = TOTAL_GATES          # 64
LINE_DOCUMENT_ENTRIES = TOTAL_LINES          # 384
CONNECTION_DOCUMENT_ENTRIES = 36
PARTITION_DOCUMENT_CONTAINERS = 9

# Default field names, as used by the existing knowledge systems
FIELD_GATE = "gateNumber"
FIELD_LINE = "lineNumber"
FIELD_GROUP_NAME = "groupName"
FIELD_GATES = "gates"
FIELD_PAIR = ("gate1", "gate2")
FIELD_PAIR_LABEL = "channelNumber"
FIELD_CONTAINER_NAME = "centerName"
FIELD_DECLARED_TOTAL = "totalGates"

# Envelope fields of a knowledge-system file
ENVELOPE_SYSTEM_NAME = "systemName"
ENVELOPE_VERSION = "version"
ENVELOPE_MAPPINGS = "mappings"
ENVELOPE_ARCHITECTURE = "dataArchitecture"
ENVELOPE_COMPLETENESS = "completeness"
COMPLETENESS_FULL = "full"
