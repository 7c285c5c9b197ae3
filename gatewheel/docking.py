"""
Gate Wheel - Docking Validator

Audits knowledge documents against the root system.

A document problem is an expected outcome of authoring, not an error:
every violated invariant is collected into a ValidationReport and returned,
so an author can fix everything in one pass. Nothing here raises for a bad
document.

════════════════════════════════════════════════════════════════════════════════
DOCUMENT SHAPES
════════════════════════════════════════════════════════════════════════════════

    GATE        64 entries, gates 1..64 once each
    LINE        384 entries, (gate, line) over 1..64 × 1..6 once each
    GROUPING    4 / 8 / 16 entries (quarters / trigrams / faces); claimed
                gate lists re-derived for every gate, never trusted
    CONNECTION  36 unordered gate pairs, canonical (min, max)
    PARTITION   9 containers covering 1..64 exactly once

One strategy class per shape, looked up in a registry. A new shape means a
new strategy, not edits to the existing ones.

════════════════════════════════════════════════════════════════════════════════
COUNT RULE
════════════════════════════════════════════════════════════════════════════════

When the entry count is wrong the missing keys ride on that one count
violation. A separate coverage violation appears only when the count is
right and keys are still missing (hidden by duplicates or bad entries).

    35 of 36 connections → exactly one violation:
        "connections: expected 36, found 35; missing pair 10-20" (keys = the
        absent pair, found against the packaged 36 connections unless the
        caller supplies its own reference set)
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from .constants import (
    GATE_RANGE, LINE_RANGE,
    GATE_DOCUMENT_ENTRIES, LINE_DOCUMENT_ENTRIES,
    CONNECTION_DOCUMENT_ENTRIES, PARTITION_DOCUMENT_CONTAINERS,
    FIELD_GATE, FIELD_LINE, FIELD_GROUP_NAME, FIELD_GATES,
    FIELD_PAIR, FIELD_PAIR_LABEL, FIELD_CONTAINER_NAME, FIELD_DECLARED_TOTAL,
    ENVELOPE_SYSTEM_NAME, ENVELOPE_VERSION, ENVELOPE_MAPPINGS,
    ENVELOPE_ARCHITECTURE, ENVELOPE_COMPLETENESS, COMPLETENESS_FULL,
    CONNECTIONS_FILE, get_data_path,
)
from .errors import DataIntegrityError, require_gate, require_line
from .positioning import PositioningAlgorithm, GroupingKind

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# INVARIANT NAMES
# ═══════════════════════════════════════════════════════════════════════════════

ENTRY_COUNT = "entry_count"
ENTRY_TYPE = "entry_type"
COVERAGE = "coverage"
DUPLICATE_KEY = "duplicate_key"
GATE_RANGE_INVARIANT = "gate_range"
LINE_RANGE_INVARIANT = "line_range"
REQUIRED_FIELD = "required_field"
GROUP_NAME = "group_name"
GROUP_MEMBERSHIP = "group_membership"
PAIR_DISTINCT = "pair_distinct"
PAIR_REFERENCE = "pair_reference"
PAIR_LABEL = "pair_label"
PARTITION_OVERLAP = "partition_overlap"
CONTAINER_GATES = "container_gates"
DECLARED_TOTAL = "declared_total"

ENVELOPE = "envelope"
SYSTEM_NAME = "system_name"
VERSION = "version"
MAPPINGS = "mappings"
SHAPE = "shape"


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class DocumentShape(Enum):
    """The five ways a knowledge document can dock."""
    GATE = "gate"
    LINE = "line"
    GROUPING = "grouping"
    CONNECTION = "connection"
    PARTITION = "partition"

    @classmethod
    def from_architecture(cls, value) -> Optional['DocumentShape']:
        """Map a dataArchitecture token ("grouping", "structure" ...) to a shape."""
        if not isinstance(value, str):
            return None
        return ARCHITECTURE_SHAPES.get(value.strip().lower())


ARCHITECTURE_SHAPES = {
    "gate": DocumentShape.GATE,
    "gates": DocumentShape.GATE,
    "gate-level": DocumentShape.GATE,
    "line": DocumentShape.LINE,
    "lines": DocumentShape.LINE,
    "line-level": DocumentShape.LINE,
    "grouping": DocumentShape.GROUPING,
    "connection": DocumentShape.CONNECTION,
    "connections": DocumentShape.CONNECTION,
    "relational": DocumentShape.CONNECTION,
    "partition": DocumentShape.PARTITION,
    "structure": DocumentShape.PARTITION,
}


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


# ═══════════════════════════════════════════════════════════════════════════════
# REPORT
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Violation:
    """One broken invariant: what, where, expected vs actual."""
    invariant: str
    message: str
    keys: Tuple = ()
    expected: Any = None
    actual: Any = None
    severity: Severity = Severity.ERROR

    def to_dict(self) -> dict:
        return {
            "invariant": self.invariant,
            "message": self.message,
            "keys": [list(k) if isinstance(k, tuple) else k for k in self.keys],
            "expected": self.expected,
            "actual": self.actual,
            "severity": self.severity.value,
        }


@dataclass
class ValidationReport:
    """All violations found in one document. Empty = pass."""
    shape: Optional[DocumentShape] = None
    system_name: Optional[str] = None
    entries_checked: int = 0
    violations: List[Violation] = field(default_factory=list)

    def add(self, violation: Violation):
        self.violations.append(violation)

    @property
    def errors(self) -> List[Violation]:
        return [v for v in self.violations if v.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if v.severity is Severity.WARNING]

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def invariants(self) -> List[str]:
        """Names of violated invariants, in report order, without repeats."""
        seen = []
        for v in self.violations:
            if v.invariant not in seen:
                seen.append(v.invariant)
        return seen

    def for_invariant(self, invariant: str) -> List[Violation]:
        return [v for v in self.violations if v.invariant == invariant]

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self):
        return iter(self.violations)

    def to_dict(self) -> dict:
        return {
            "shape": self.shape.value if isinstance(self.shape, DocumentShape) else self.shape,
            "systemName": self.system_name,
            "entriesChecked": self.entries_checked,
            "passed": self.passed,
            "violations": [v.to_dict() for v in self.violations],
        }

    def summary(self) -> str:
        """Human-readable report, one line per violation."""
        name = self.system_name or "document"
        shape = self.shape.value if isinstance(self.shape, DocumentShape) else self.shape
        lines = [f"{name} ({shape}): {self.entries_checked} entries checked"]
        for v in self.violations:
            marker = "ERROR" if v.severity is Severity.ERROR else "WARN "
            lines.append(f"  {marker} [{v.invariant}] {v.message}")
        lines.append("PASSED" if self.passed else
                     f"FAILED ({len(self.errors)} errors, {len(self.warnings)} warnings)")
        return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════════
# OPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ValidationOptions:
    """
    Per-document settings.

    required_fields: dotted paths that every entry must carry,
        e.g. ["knowledge.name", "knowledge.keynote"]
    grouping: which derived grouping a GROUPING document docks into.
        Inferred from the group names when omitted.
    reference_pairs: the full expected connection set; lets the validator
        name absent and unexpected pairs. None uses the packaged 36
        connections; an empty collection turns the comparison off.
    partial: skip entry-count and coverage checks (documents that do not
        claim completeness).
    """
    required_fields: Sequence[str] = ()
    grouping: Optional[GroupingKind] = None
    reference_pairs: Optional[Iterable[Tuple[int, int]]] = None
    partial: bool = False

    gate_field: str = FIELD_GATE
    line_field: str = FIELD_LINE
    group_name_field: str = FIELD_GROUP_NAME
    gates_field: str = FIELD_GATES
    pair_fields: Tuple[str, str] = FIELD_PAIR
    pair_label_field: str = FIELD_PAIR_LABEL
    container_name_field: str = FIELD_CONTAINER_NAME
    declared_total_field: str = FIELD_DECLARED_TOTAL


_MISSING = object()


def resolve_field(entry: Mapping, path: str):
    """Follow a dotted path through nested mappings. _MISSING if absent."""
    value = entry
    for part in path.split('.'):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _valid_gate(value) -> bool:
    try:
        require_gate(value)
    except ValueError:
        return False
    return True


def _valid_line(value) -> bool:
    try:
        require_line(value)
    except ValueError:
        return False
    return True


def canonical_pair(a: int, b: int) -> Tuple[int, int]:
    """Unordered pair as (min, max)."""
    return (a, b) if a <= b else (b, a)


# ═══════════════════════════════════════════════════════════════════════════════
# STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════

_STRATEGIES: Dict[Any, Type['ShapeStrategy']] = {}


def register_strategy(shape):
    """Class decorator: make a strategy responsible for a shape."""
    def decorator(cls):
        cls.shape = shape
        _STRATEGIES[shape] = cls
        return cls
    return decorator


def get_strategy(shape) -> Type['ShapeStrategy']:
    try:
        return _STRATEGIES[shape]
    except KeyError:
        raise ValueError(f"No validation strategy registered for shape {shape!r}")


class ShapeStrategy:
    """Base class. Subclasses implement check(entries)."""
    shape = None

    def __init__(self, positioning: PositioningAlgorithm,
                 options: ValidationOptions, report: ValidationReport):
        self.positioning = positioning
        self.options = options
        self.report = report

    def check(self, entries: Sequence):
        raise NotImplementedError

    # ─────────────────────────────────────────────────────────────────────────
    # Shared checks
    # ─────────────────────────────────────────────────────────────────────────

    def fail(self, invariant: str, message: str, keys=(), expected=None, actual=None,
             severity: Severity = Severity.ERROR):
        self.report.add(Violation(
            invariant=invariant, message=message, keys=tuple(keys),
            expected=expected, actual=actual, severity=severity))

    def is_mapping(self, index: int, entry) -> bool:
        if isinstance(entry, Mapping):
            return True
        self.fail(ENTRY_TYPE, f"entry {index} is not an object",
                  keys=(index,), expected="object", actual=type(entry).__name__)
        return False

    def check_required(self, key, entry: Mapping):
        for path in self.options.required_fields:
            if resolve_field(entry, path) is _MISSING:
                self.fail(REQUIRED_FIELD, f"{self.describe(key)} is missing '{path}'",
                          keys=(key, path), expected=path, actual=None)

    def check_declared_total(self, key, entry: Mapping, gates: Sequence):
        declared = entry.get(self.options.declared_total_field, _MISSING)
        if declared is not _MISSING and declared != len(gates):
            self.fail(DECLARED_TOTAL,
                      f"{self.describe(key)} declares {declared} gates but lists {len(gates)}",
                      keys=(key,), expected=len(gates), actual=declared)

    def check_coverage(self, label: str, expected_count: int, found_count: int,
                       present: Iterable, universe: Iterable):
        """Count rule: see module docstring."""
        if self.options.partial:
            return
        present = set(present)
        missing = [k for k in universe if k not in present]
        if found_count != expected_count:
            message = f"{label}: expected {expected_count}, found {found_count}"
            if missing:
                message += "; missing " + ", ".join(self.describe(k) for k in missing)
            self.fail(ENTRY_COUNT, message, keys=missing,
                      expected=expected_count, actual=found_count)
        elif missing:
            self.fail(COVERAGE,
                      f"{label}: {len(missing)} missing: "
                      + ", ".join(self.describe(k) for k in missing),
                      keys=missing, expected=expected_count,
                      actual=expected_count - len(missing))

    def describe(self, key) -> str:
        return str(key)


@register_strategy(DocumentShape.GATE)
class GateStrategy(ShapeStrategy):
    """64 entries, one per gate."""

    def describe(self, key) -> str:
        return f"gate {key}" if isinstance(key, int) else str(key)

    def check(self, entries):
        field_name = self.options.gate_field
        seen: Dict[int, int] = {}

        for index, entry in enumerate(entries):
            if not self.is_mapping(index, entry):
                continue
            gate = entry.get(field_name)
            if not _valid_gate(gate):
                self.fail(GATE_RANGE_INVARIANT,
                          f"entry {index}: invalid gate {gate!r} (must be 1-64)",
                          keys=(index,), expected="1-64", actual=gate)
                self.check_required(f"entry {index}", entry)
                continue
            if gate in seen:
                self.fail(DUPLICATE_KEY,
                          f"gate {gate} appears more than once (entries {seen[gate]} and {index})",
                          keys=(gate,), expected=1, actual=index)
            else:
                seen[gate] = index
            self.check_required(gate, entry)

        self.check_coverage("gates", GATE_DOCUMENT_ENTRIES, len(entries), seen, GATE_RANGE)


@register_strategy(DocumentShape.LINE)
class LineStrategy(ShapeStrategy):
    """384 entries, one per (gate, line)."""

    def describe(self, key) -> str:
        if isinstance(key, tuple):
            return f"line {key[0]}.{key[1]}"
        return str(key)

    def check(self, entries):
        gate_field = self.options.gate_field
        line_field = self.options.line_field
        seen: Dict[Tuple[int, int], int] = {}

        for index, entry in enumerate(entries):
            if not self.is_mapping(index, entry):
                continue
            gate = entry.get(gate_field)
            line = entry.get(line_field)
            valid = True
            if not _valid_gate(gate):
                self.fail(GATE_RANGE_INVARIANT,
                          f"entry {index}: invalid gate {gate!r} (must be 1-64)",
                          keys=(index,), expected="1-64", actual=gate)
                valid = False
            if not _valid_line(line):
                self.fail(LINE_RANGE_INVARIANT,
                          f"entry {index}: invalid line {line!r} (must be 1-6)",
                          keys=(index,), expected="1-6", actual=line)
                valid = False
            if not valid:
                self.check_required(f"entry {index}", entry)
                continue

            key = (gate, line)
            if key in seen:
                self.fail(DUPLICATE_KEY,
                          f"{self.describe(key)} appears more than once (entries {seen[key]} and {index})",
                          keys=(key,), expected=1, actual=index)
            else:
                seen[key] = index
            self.check_required(key, entry)

        universe = [(g, l) for g in GATE_RANGE for l in LINE_RANGE]
        self.check_coverage("lines", LINE_DOCUMENT_ENTRIES, len(entries), seen, universe)


@register_strategy(DocumentShape.GROUPING)
class GroupingStrategy(ShapeStrategy):
    """
    One entry per group of a derived grouping.

    Claimed gate lists are compared with the derivation for every gate:
    a hand-maintained list that drifted from the binaries is caught here.
    """

    def describe(self, key) -> str:
        return f"group {key!r}" if isinstance(key, str) else str(key)

    def infer_grouping(self, entries) -> GroupingKind:
        """Pick the grouping whose names and memberships fit best."""
        name_field = self.options.group_name_field
        names = {e.get(name_field) for e in entries
                 if isinstance(e, Mapping) and isinstance(e.get(name_field), str)}
        claimed = {e.get(name_field): e.get(self.options.gates_field)
                   for e in entries
                   if isinstance(e, Mapping) and isinstance(e.get(name_field), str)}

        def score(kind: GroupingKind):
            overlap = len(names & set(kind.names))
            derived = self.positioning.group_members(kind)
            drift = sum(1 for name, gates in claimed.items()
                        if isinstance(gates, list) and name in derived
                        and set(g for g in gates if _valid_gate(g)) != set(derived[name]))
            return (overlap, -drift)

        kind = max(GroupingKind, key=score)
        logger.debug(f"Grouping inferred as {kind.value}")
        return kind

    def check(self, entries):
        kind = self.options.grouping
        if kind is None:
            kind = self.infer_grouping(entries)
        kind = GroupingKind(kind)
        derived = self.positioning.group_members(kind)
        name_field = self.options.group_name_field
        gates_field = self.options.gates_field
        seen: Dict[str, int] = {}

        for index, entry in enumerate(entries):
            if not self.is_mapping(index, entry):
                continue
            name = entry.get(name_field)
            if not isinstance(name, str) or name not in derived:
                self.fail(GROUP_NAME,
                          f"entry {index}: {name!r} is not a {kind.value} "
                          f"(expected one of {', '.join(kind.names)})",
                          keys=(index,), expected=list(kind.names), actual=name)
                self.check_required(f"entry {index}", entry)
                continue
            if name in seen:
                self.fail(DUPLICATE_KEY,
                          f"{self.describe(name)} appears more than once (entries {seen[name]} and {index})",
                          keys=(name,), expected=1, actual=index)
            else:
                seen[name] = index
            self.check_required(name, entry)

            gates = entry.get(gates_field, _MISSING)
            if gates is not _MISSING:
                self.check_membership(name, gates, derived[name])
                if isinstance(gates, list):
                    self.check_declared_total(name, entry, gates)

        self.check_coverage(f"{kind.value} groups", kind.cardinality, len(entries),
                            seen, kind.names)

    def check_membership(self, name: str, gates, expected: List[int]):
        if not isinstance(gates, list):
            self.fail(GROUP_MEMBERSHIP, f"{self.describe(name)}: '{self.options.gates_field}' is not a list",
                      keys=(name,), expected=expected, actual=gates)
            return

        invalid = [g for g in gates if not _valid_gate(g)]
        for gate in invalid:
            self.fail(GATE_RANGE_INVARIANT, f"{self.describe(name)}: invalid gate {gate!r}",
                      keys=(name,), expected="1-64", actual=gate)

        valid = [g for g in gates if _valid_gate(g)]
        repeated = sorted({g for g in valid if valid.count(g) > 1})
        for gate in repeated:
            self.fail(DUPLICATE_KEY, f"{self.describe(name)} lists gate {gate} more than once",
                      keys=(name, gate), expected=1, actual=valid.count(gate))

        claimed = set(valid)
        missing = sorted(set(expected) - claimed)
        extra = sorted(claimed - set(expected))
        if missing or extra:
            parts = []
            if missing:
                parts.append(f"missing {missing}")
            if extra:
                parts.append(f"not derived {extra}")
            self.fail(GROUP_MEMBERSHIP,
                      f"{self.describe(name)} drifts from the derivation: " + ", ".join(parts),
                      keys=(name,), expected=sorted(expected), actual=sorted(claimed))


@register_strategy(DocumentShape.CONNECTION)
class ConnectionStrategy(ShapeStrategy):
    """36 unordered gate pairs."""

    def describe(self, key) -> str:
        if isinstance(key, tuple):
            return f"pair {key[0]}-{key[1]}"
        return str(key)

    def check(self, entries):
        first, second = self.options.pair_fields
        label_field = self.options.pair_label_field
        seen: Dict[Tuple[int, int], Tuple[int, Tuple[int, int]]] = {}

        for index, entry in enumerate(entries):
            if not self.is_mapping(index, entry):
                continue
            a, b = entry.get(first), entry.get(second)
            bad = [g for g in (a, b) if not _valid_gate(g)]
            if bad:
                self.fail(GATE_RANGE_INVARIANT,
                          f"entry {index}: invalid gate(s) {bad} (must be 1-64)",
                          keys=(index,), expected="1-64", actual=[a, b])
                self.check_required(f"entry {index}", entry)
                continue
            if a == b:
                self.fail(PAIR_DISTINCT, f"entry {index}: gate {a} is paired with itself",
                          keys=(index,), expected="two distinct gates", actual=[a, b])
                self.check_required(f"entry {index}", entry)
                continue

            pair = canonical_pair(a, b)
            if pair in seen:
                earlier_index, earlier_raw = seen[pair]
                orientation = " (stored in both orientations)" if earlier_raw != (a, b) else ""
                self.fail(DUPLICATE_KEY,
                          f"{self.describe(pair)} appears more than once "
                          f"(entries {earlier_index} and {index}){orientation}",
                          keys=(pair,), expected=1, actual=index)
            else:
                seen[pair] = (index, (a, b))

            label = entry.get(label_field, _MISSING)
            expected_label = f"{pair[0]}-{pair[1]}"
            if label is not _MISSING and str(label) != expected_label:
                self.fail(PAIR_LABEL,
                          f"{self.describe(pair)} is labelled {label!r}, expected {expected_label!r}",
                          keys=(pair,), expected=expected_label, actual=label)
            self.check_required(pair, entry)

        reference_pairs = self.options.reference_pairs
        if reference_pairs is None:
            reference_pairs = load_connection_pairs()
        reference = sorted({canonical_pair(a, b) for a, b in reference_pairs})
        if reference:
            for pair in sorted(set(seen) - set(reference)):
                self.fail(PAIR_REFERENCE, f"{self.describe(pair)} is not a known connection",
                          keys=(pair,), expected=None, actual=pair)

        self.check_coverage("connections", CONNECTION_DOCUMENT_ENTRIES, len(entries),
                            seen, reference)


@register_strategy(DocumentShape.PARTITION)
class PartitionStrategy(ShapeStrategy):
    """9 containers; every gate in exactly one of them."""

    def describe(self, key) -> str:
        return f"container {key!r}" if isinstance(key, str) else str(key)

    def check(self, entries):
        name_field = self.options.container_name_field
        gates_field = self.options.gates_field
        owner: Dict[int, str] = {}
        names: Dict[str, int] = {}

        for index, entry in enumerate(entries):
            if not self.is_mapping(index, entry):
                continue
            name = entry.get(name_field)
            if not isinstance(name, str) or not name:
                name = f"entry {index}"
            elif name in names:
                self.fail(DUPLICATE_KEY,
                          f"{self.describe(name)} appears more than once (entries {names[name]} and {index})",
                          keys=(name,), expected=1, actual=index)
            names.setdefault(name, index)
            self.check_required(name, entry)

            gates = entry.get(gates_field)
            if not isinstance(gates, list):
                self.fail(CONTAINER_GATES, f"{self.describe(name)} has no '{gates_field}' list",
                          keys=(name,), expected="list of gates", actual=gates)
                continue
            self.check_declared_total(name, entry, gates)

            for gate in gates:
                if not _valid_gate(gate):
                    self.fail(GATE_RANGE_INVARIANT, f"{self.describe(name)}: invalid gate {gate!r}",
                              keys=(name,), expected="1-64", actual=gate)
                    continue
                if gate in owner:
                    where = (f"twice in {self.describe(name)}" if owner[gate] == name
                             else f"by both {self.describe(owner[gate])} and {self.describe(name)}")
                    self.fail(PARTITION_OVERLAP, f"gate {gate} claimed {where}",
                              keys=(gate,), expected=owner[gate], actual=name)
                else:
                    owner[gate] = name

        if self.options.partial:
            return
        if len(entries) != PARTITION_DOCUMENT_CONTAINERS:
            self.fail(ENTRY_COUNT,
                      f"containers: expected {PARTITION_DOCUMENT_CONTAINERS}, found {len(entries)}",
                      expected=PARTITION_DOCUMENT_CONTAINERS, actual=len(entries))
        missing = [g for g in GATE_RANGE if g not in owner]
        if missing:
            self.fail(COVERAGE, f"gates: {len(missing)} not in any container: {missing}",
                      keys=missing, expected=len(GATE_RANGE), actual=len(owner))


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATOR
# ═══════════════════════════════════════════════════════════════════════════════

class DockingValidator:
    """Runs the strategy for a shape and returns the report."""

    def __init__(self, positioning: Optional[PositioningAlgorithm] = None):
        self.positioning = positioning if positioning is not None else PositioningAlgorithm()

    @staticmethod
    def _coerce_shape(shape):
        if isinstance(shape, DocumentShape) or shape in _STRATEGIES:
            return shape
        try:
            return DocumentShape(shape)
        except ValueError:
            return DocumentShape.from_architecture(shape) or shape

    def validate(self, document, shape, options: Optional[ValidationOptions] = None) -> ValidationReport:
        """
        Check a document (entry list, or envelope with "mappings") against a shape.

        Raises ValueError only for an unknown shape, which is a programming
        error at the call site. Document problems land in the report.
        """
        shape = self._coerce_shape(shape)
        strategy_cls = get_strategy(shape)
        options = options if options is not None else ValidationOptions()

        system_name = None
        entries = document
        if isinstance(document, Mapping):
            system_name = document.get(ENVELOPE_SYSTEM_NAME)
            entries = document.get(ENVELOPE_MAPPINGS, [])

        report = ValidationReport(shape=shape, system_name=system_name)
        if not isinstance(entries, list):
            report.add(Violation(MAPPINGS, "mappings is not a list",
                                 expected="list", actual=type(entries).__name__))
            return report

        report.entries_checked = len(entries)
        logger.debug(f"Validating {len(entries)} entries with {strategy_cls.__name__}")
        strategy_cls(self.positioning, options, report).check(entries)

        logger.info(f"{system_name or 'document'} ({getattr(shape, 'value', shape)}): "
                    f"{len(report.errors)} errors, {len(report.warnings)} warnings "
                    f"across {len(entries)} entries")
        return report

    def verify_knowledge_system(self, mapping_file, shape=None,
                                options: Optional[ValidationOptions] = None) -> ValidationReport:
        """
        Verify a full knowledge-system file: envelope first, then entries.

            systemName        required
            version           recommended (warning)
            mappings          required list
            dataArchitecture  picks the shape when none is given
            completeness      anything but "full" relaxes count checks
        """
        report = ValidationReport()
        if not isinstance(mapping_file, Mapping):
            report.add(Violation(ENVELOPE, "knowledge-system file is not an object",
                                 expected="object", actual=type(mapping_file).__name__))
            return report

        system_name = mapping_file.get(ENVELOPE_SYSTEM_NAME)
        report.system_name = system_name if isinstance(system_name, str) else None

        envelope = []
        if not isinstance(system_name, str) or not system_name:
            envelope.append(Violation(SYSTEM_NAME, "missing or invalid systemName",
                                      expected="non-empty string", actual=system_name))
        if not mapping_file.get(ENVELOPE_VERSION):
            envelope.append(Violation(VERSION, "missing version number",
                                      expected="version", actual=None,
                                      severity=Severity.WARNING))
            logger.warning(f"{system_name or 'knowledge system'} has no version number")

        mappings = mapping_file.get(ENVELOPE_MAPPINGS, _MISSING)
        if mappings is _MISSING or not isinstance(mappings, list):
            envelope.append(Violation(MAPPINGS, "missing mappings array" if mappings is _MISSING
                                      else "mappings is not an array",
                                      expected="list", actual=None if mappings is _MISSING
                                      else type(mappings).__name__))
            report.violations.extend(envelope)
            return report

        if shape is None:
            architecture = mapping_file.get(ENVELOPE_ARCHITECTURE)
            shape = DocumentShape.from_architecture(architecture)
            if shape is None:
                envelope.append(Violation(SHAPE, f"cannot tell document shape from "
                                                 f"dataArchitecture {architecture!r}",
                                          expected=sorted(ARCHITECTURE_SHAPES), actual=architecture))
                report.violations.extend(envelope)
                return report

        options = options if options is not None else ValidationOptions()
        completeness = mapping_file.get(ENVELOPE_COMPLETENESS)
        if completeness is not None and completeness != COMPLETENESS_FULL and not options.partial:
            options = replace(options, partial=True)

        report = self.validate(mappings, shape, options)
        report.system_name = system_name if isinstance(system_name, str) else None
        report.violations[:0] = envelope
        return report


# ═══════════════════════════════════════════════════════════════════════════════
# CONVENIENCE
# ═══════════════════════════════════════════════════════════════════════════════

def validate(document, shape, options: Optional[ValidationOptions] = None,
             positioning: Optional[PositioningAlgorithm] = None) -> ValidationReport:
    """validate(document, shape, options) → ValidationReport."""
    return DockingValidator(positioning).validate(document, shape, options)


def load_document(path: str):
    """Read a knowledge document from JSON."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_connection_pairs(path: Optional[str] = None) -> List[Tuple[int, int]]:
    """
    The expected connection set as canonical pairs.

    Reads {"connections": [[a, b], ...]} or a bare list of pairs.
    Defaults to the packaged gatewheel/data/connections.json.
    """
    if path is None:
        path = get_data_path(CONNECTIONS_FILE)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    items = data.get("connections") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise DataIntegrityError(f"Connection file {path} has no 'connections' list")

    pairs = []
    problems = []
    for index, item in enumerate(items):
        if not isinstance(item, (list, tuple)) or len(item) != 2 \
                or not all(_valid_gate(g) for g in item) or item[0] == item[1]:
            problems.append(f"entry {index} is not a pair of distinct gates: {item!r}")
            continue
        pair = canonical_pair(item[0], item[1])
        if pair in pairs:
            problems.append(f"pair {pair[0]}-{pair[1]} listed more than once")
        else:
            pairs.append(pair)
    if problems:
        raise DataIntegrityError(f"Connection file {path} failed verification", problems)

    logger.debug(f"Loaded {len(pairs)} connection pairs from {path}")
    return sorted(pairs)
