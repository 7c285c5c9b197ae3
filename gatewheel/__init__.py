"""
Gate Wheel - Root Positioning & Docking

Every knowledge layer docks into one coordinate system: 64 gates × 6 lines
around a wheel, each with a binary identity and the groupings derived from it.

Usage:
    from gatewheel import PositioningAlgorithm, DockingValidator, DocumentShape

    root = PositioningAlgorithm()
    data = root.get_docking_data(13, 4)
    data.visual_angle, data.quarter, data.trigrams.lower

    validator = DockingValidator(root)
    report = validator.validate(document, DocumentShape.CONNECTION)
    report.passed
"""

from .errors import (
    GateWheelError, InvalidGateError, InvalidLineError,
    ConfigurationError, DataIntegrityError,
)
from .binary_identity import BinaryIdentityTable, load_binary_table, complement
from .wheel_config import (
    WheelConfiguration, WheelAngle, NorthPosition, VisualDirection,
    PRESETS, from_preset, load_configuration, load_gate_sequence,
)
from .positioning import PositioningAlgorithm, DockingData, TrigramPair, GroupingKind
from .docking import (
    DockingValidator, DocumentShape, ValidationOptions, ValidationReport,
    Violation, Severity, ShapeStrategy, register_strategy,
    validate, load_document, load_connection_pairs, canonical_pair,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    'GateWheelError', 'InvalidGateError', 'InvalidLineError',
    'ConfigurationError', 'DataIntegrityError',

    # Binary identity
    'BinaryIdentityTable', 'load_binary_table', 'complement',

    # Wheel configuration
    'WheelConfiguration', 'WheelAngle', 'NorthPosition', 'VisualDirection',
    'PRESETS', 'from_preset', 'load_configuration', 'load_gate_sequence',

    # Positioning
    'PositioningAlgorithm', 'DockingData', 'TrigramPair', 'GroupingKind',

    # Docking validation
    'DockingValidator', 'DocumentShape', 'ValidationOptions', 'ValidationReport',
    'Violation', 'Severity', 'ShapeStrategy', 'register_strategy',
    'validate', 'load_document', 'load_connection_pairs', 'canonical_pair',
]
