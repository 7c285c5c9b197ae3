"""
Tests for Docking Validator: knowledge documents against the root

Validates:
    1. Complete documents of all five shapes pass
    2. Validation is idempotent; one defect → one new violation
    3. Count rule: 35 connections → exactly one violation naming the absent pair
    4. Duplicates (including reversed pairs), range errors, overlaps
    5. Grouping lists re-derived, drift reported per group
    6. Envelope checks: systemName, version warning, completeness
    7. New shapes plug in through the strategy registry
"""

import copy
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from gatewheel import docking
from gatewheel.docking import (
    DockingValidator, DocumentShape, ValidationOptions, ValidationReport,
    ShapeStrategy, Severity, register_strategy, validate, resolve_field,
    load_connection_pairs,
    ENTRY_COUNT, ENTRY_TYPE, COVERAGE, DUPLICATE_KEY, GATE_RANGE_INVARIANT,
    LINE_RANGE_INVARIANT, REQUIRED_FIELD, GROUP_NAME, GROUP_MEMBERSHIP,
    PAIR_DISTINCT, PAIR_REFERENCE, PAIR_LABEL, PARTITION_OVERLAP,
    CONTAINER_GATES, DECLARED_TOTAL, SYSTEM_NAME, VERSION, MAPPINGS, SHAPE,
)
from gatewheel.errors import DataIntegrityError
from gatewheel.positioning import PositioningAlgorithm, GroupingKind
from reference_data import (
    CHANNELS, LOWER_TRIGRAM_GROUPS,
    gate_document, line_document, channel_document, center_document,
)


def grouping_document(root, kind):
    return [{"groupName": name, "gates": gates, "knowledge": {"theme": name}}
            for name, gates in root.group_members(kind).items()]


class ValidatorTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.root = PositioningAlgorithm()
        cls.validator = DockingValidator(cls.root)


class TestCompleteDocuments(ValidatorTestCase):
    """Well-formed documents of every shape produce empty reports."""

    def test_gate_document(self):
        report = self.validator.validate(gate_document(), DocumentShape.GATE)
        self.assertTrue(report.passed)
        self.assertEqual(len(report), 0)
        self.assertEqual(report.entries_checked, 64)

    def test_line_document(self):
        report = self.validator.validate(line_document(), DocumentShape.LINE)
        self.assertEqual(len(report), 0)

    def test_connection_document(self):
        options = ValidationOptions(reference_pairs=CHANNELS)
        report = self.validator.validate(channel_document(), DocumentShape.CONNECTION, options)
        self.assertEqual(len(report), 0)

    def test_partition_document(self):
        report = self.validator.validate(center_document(), DocumentShape.PARTITION)
        self.assertEqual(len(report), 0)

    def test_grouping_documents(self):
        for kind in (GroupingKind.QUARTER, GroupingKind.FACE,
                     GroupingKind.LOWER_TRIGRAM, GroupingKind.UPPER_TRIGRAM):
            document = grouping_document(self.root, kind)
            report = self.validator.validate(document, DocumentShape.GROUPING,
                                             ValidationOptions(grouping=kind))
            self.assertEqual(len(report), 0, kind)

    def test_shape_given_as_string(self):
        report = self.validator.validate(gate_document(), "gate")
        self.assertIs(report.shape, DocumentShape.GATE)
        report = self.validator.validate(center_document(), "structure")
        self.assertIs(report.shape, DocumentShape.PARTITION)

    def test_module_level_validate(self):
        self.assertTrue(validate(gate_document(), DocumentShape.GATE).passed)

    def test_unknown_shape(self):
        with self.assertRaises(ValueError):
            self.validator.validate(gate_document(), "nonsense")


class TestIdempotence(ValidatorTestCase):
    """Same input, same report; one defect, one violation."""

    OPTIONS = ValidationOptions(required_fields=("knowledge.name", "knowledge.keynote"))

    def test_repeatable(self):
        document = gate_document()
        first = self.validator.validate(document, DocumentShape.GATE, self.OPTIONS)
        second = self.validator.validate(document, DocumentShape.GATE, self.OPTIONS)
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_single_missing_field(self):
        document = gate_document()
        del document[16]["knowledge"]["keynote"]
        report = self.validator.validate(document, DocumentShape.GATE, self.OPTIONS)
        self.assertEqual(len(report), 1)
        violation = report.violations[0]
        self.assertEqual(violation.invariant, REQUIRED_FIELD)
        self.assertEqual(violation.keys, (17, "knowledge.keynote"))
        self.assertIn("gate 17", violation.message)

    def test_input_not_mutated(self):
        document = gate_document()
        snapshot = copy.deepcopy(document)
        self.validator.validate(document, DocumentShape.GATE, self.OPTIONS)
        self.assertEqual(document, snapshot)

    def test_resolve_field(self):
        entry = {"knowledge": {"name": "x", "empty": None}}
        self.assertEqual(resolve_field(entry, "knowledge.name"), "x")
        self.assertIsNone(resolve_field(entry, "knowledge.empty"))
        self.assertIs(resolve_field(entry, "knowledge.other"), docking._MISSING)
        self.assertIs(resolve_field(entry, "knowledge.name.deeper"), docking._MISSING)


class TestGateAndLineDocuments(ValidatorTestCase):

    def test_missing_gate(self):
        document = [e for e in gate_document() if e["gateNumber"] != 33]
        report = self.validator.validate(document, DocumentShape.GATE)
        self.assertEqual(len(report), 1)
        self.assertEqual(report.violations[0].invariant, ENTRY_COUNT)
        self.assertEqual(report.violations[0].keys, (33,))
        self.assertIn("expected 64, found 63", report.violations[0].message)

    def test_out_of_range_gate(self):
        document = gate_document()
        document[63]["gateNumber"] = 65
        report = self.validator.validate(document, DocumentShape.GATE)
        self.assertEqual(report.invariants, [GATE_RANGE_INVARIANT, COVERAGE])
        self.assertEqual(report.for_invariant(COVERAGE)[0].keys, (64,))

    def test_duplicate_gate(self):
        document = gate_document()
        document[1]["gateNumber"] = 1
        report = self.validator.validate(document, DocumentShape.GATE)
        self.assertEqual(report.invariants, [DUPLICATE_KEY, COVERAGE])
        self.assertEqual(report.for_invariant(DUPLICATE_KEY)[0].keys, (1,))

    def test_non_object_entry(self):
        document = gate_document()
        document[0] = "gate one"
        report = self.validator.validate(document, DocumentShape.GATE)
        self.assertEqual(report.invariants, [ENTRY_TYPE, COVERAGE])

    def test_string_gate_number_rejected(self):
        document = gate_document()
        document[4]["gateNumber"] = "5"
        report = self.validator.validate(document, DocumentShape.GATE)
        self.assertIn(GATE_RANGE_INVARIANT, report.invariants)

    def test_missing_line(self):
        document = [e for e in line_document()
                    if (e["gateNumber"], e["lineNumber"]) != (13, 4)]
        report = self.validator.validate(document, DocumentShape.LINE)
        self.assertEqual(len(report), 1)
        self.assertEqual(report.violations[0].keys, ((13, 4),))
        self.assertIn("line 13.4", report.violations[0].message)

    def test_duplicate_line(self):
        document = line_document()
        document[-1]["gateNumber"], document[-1]["lineNumber"] = 1, 1
        report = self.validator.validate(document, DocumentShape.LINE)
        self.assertEqual(report.invariants, [DUPLICATE_KEY, COVERAGE])
        self.assertEqual(report.for_invariant(COVERAGE)[0].keys, ((64, 6),))

    def test_line_out_of_range(self):
        document = line_document()
        document[0]["lineNumber"] = 7
        report = self.validator.validate(document, DocumentShape.LINE)
        self.assertIn(LINE_RANGE_INVARIANT, report.invariants)

    def test_partial_skips_counts(self):
        document = gate_document()[:10]
        report = self.validator.validate(document, DocumentShape.GATE,
                                         ValidationOptions(partial=True))
        self.assertTrue(report.passed)

    def test_custom_field_names(self):
        document = [{"gate": g} for g in range(1, 65)]
        report = self.validator.validate(document, DocumentShape.GATE,
                                         ValidationOptions(gate_field="gate"))
        self.assertTrue(report.passed)


class TestConnectionDocuments(ValidatorTestCase):
    """36 unordered pairs."""

    def test_thirty_five_connections(self):
        """One absent pair → exactly one violation, naming it."""
        document = [e for e in channel_document() if (e["gate1"], e["gate2"]) != (10, 20)]
        options = ValidationOptions(reference_pairs=CHANNELS)
        report = self.validator.validate(document, DocumentShape.CONNECTION, options)
        self.assertEqual(len(report), 1)
        violation = report.violations[0]
        self.assertEqual(violation.invariant, ENTRY_COUNT)
        self.assertIn("expected 36, found 35", violation.message)
        self.assertEqual(violation.keys, ((10, 20),))
        self.assertEqual((violation.expected, violation.actual), (36, 35))

    def test_thirty_five_with_packaged_reference(self):
        """Default options still name the absent pair."""
        document = channel_document()[:-1]
        report = self.validator.validate(document, DocumentShape.CONNECTION)
        self.assertEqual(len(report), 1)
        violation = report.violations[0]
        self.assertEqual(violation.invariant, ENTRY_COUNT)
        self.assertIn("expected 36, found 35", violation.message)
        self.assertIn("missing pair 47-64", violation.message)
        self.assertEqual(violation.keys, ((47, 64),))

    def test_thirty_five_with_reference_turned_off(self):
        document = channel_document()[:-1]
        report = self.validator.validate(document, DocumentShape.CONNECTION,
                                         ValidationOptions(reference_pairs=()))
        self.assertEqual(len(report), 1)
        self.assertEqual(report.violations[0].keys, ())

    def test_packaged_connections(self):
        self.assertEqual(load_connection_pairs(), sorted(CHANNELS))

    def test_corrupt_connection_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "connections.json")
            with open(path, 'w') as f:
                json.dump({"connections": [[1, 8], [8, 1], [5], [6, 6]]}, f)
            with self.assertRaises(DataIntegrityError) as ctx:
                load_connection_pairs(path)
        self.assertEqual(len(ctx.exception.problems), 3)

    def test_reversed_duplicate(self):
        document = channel_document()
        document[-1] = {"gate1": 8, "gate2": 1, "channelNumber": "1-8"}
        report = self.validator.validate(document, DocumentShape.CONNECTION,
                                         ValidationOptions(reference_pairs=()))
        self.assertEqual(len(report), 1)
        self.assertEqual(report.violations[0].invariant, DUPLICATE_KEY)
        self.assertIn("both orientations", report.violations[0].message)
        self.assertEqual(report.violations[0].keys, ((1, 8),))

    def test_reversed_duplicate_hides_a_pair(self):
        document = channel_document()
        document[-1] = {"gate1": 8, "gate2": 1}
        report = self.validator.validate(document, DocumentShape.CONNECTION)
        self.assertEqual(report.invariants, [DUPLICATE_KEY, COVERAGE])
        self.assertEqual(report.for_invariant(COVERAGE)[0].keys, ((47, 64),))

    def test_reversed_orientation_alone_is_fine(self):
        document = channel_document()
        document[0] = {"gate1": 8, "gate2": 1, "channelNumber": "1-8"}
        options = ValidationOptions(reference_pairs=CHANNELS)
        report = self.validator.validate(document, DocumentShape.CONNECTION, options)
        self.assertTrue(report.passed)

    def test_self_pair(self):
        document = channel_document()
        document[5] = {"gate1": 6, "gate2": 6}
        report = self.validator.validate(document, DocumentShape.CONNECTION)
        self.assertEqual(report.invariants, [PAIR_DISTINCT, COVERAGE])
        self.assertEqual(report.for_invariant(COVERAGE)[0].keys, ((6, 59),))

    def test_unknown_pair(self):
        document = channel_document()
        document[-1] = {"gate1": 1, "gate2": 2, "channelNumber": "1-2"}
        options = ValidationOptions(reference_pairs=CHANNELS)
        report = self.validator.validate(document, DocumentShape.CONNECTION, options)
        self.assertEqual(report.invariants, [PAIR_REFERENCE, COVERAGE])
        self.assertEqual(report.for_invariant(PAIR_REFERENCE)[0].keys, ((1, 2),))

    def test_label_mismatch(self):
        document = channel_document()
        document[0]["channelNumber"] = "1-9"
        report = self.validator.validate(document, DocumentShape.CONNECTION)
        self.assertEqual(report.invariants, [PAIR_LABEL])

    def test_invalid_gate_in_pair(self):
        document = channel_document()
        document[0]["gate2"] = 0
        report = self.validator.validate(document, DocumentShape.CONNECTION)
        self.assertEqual(report.invariants, [GATE_RANGE_INVARIANT, COVERAGE])
        self.assertEqual(report.for_invariant(COVERAGE)[0].keys, ((1, 8),))


class TestPartitionDocuments(ValidatorTestCase):
    """9 containers, every gate exactly once."""

    def _center(self, document, name):
        return next(e for e in document if e["centerName"] == name)

    def test_overlap(self):
        document = center_document()
        ajna = self._center(document, "Ajna")
        ajna["gates"].append(64)
        ajna["totalGates"] += 1
        report = self.validator.validate(document, DocumentShape.PARTITION)
        self.assertEqual(len(report), 1)
        violation = report.violations[0]
        self.assertEqual(violation.invariant, PARTITION_OVERLAP)
        self.assertEqual(violation.keys, (64,))
        self.assertIn("'Head'", violation.message)
        self.assertIn("'Ajna'", violation.message)

    def test_uncovered_gate(self):
        document = center_document()
        head = self._center(document, "Head")
        head["gates"].remove(64)
        head["totalGates"] -= 1
        report = self.validator.validate(document, DocumentShape.PARTITION)
        self.assertEqual(report.invariants, [COVERAGE])
        self.assertEqual(report.violations[0].keys, (64,))

    def test_declared_total(self):
        document = center_document()
        self._center(document, "Heart")["totalGates"] = 5
        report = self.validator.validate(document, DocumentShape.PARTITION)
        self.assertEqual(report.invariants, [DECLARED_TOTAL])

    def test_missing_container(self):
        document = [e for e in center_document() if e["centerName"] != "Heart"]
        report = self.validator.validate(document, DocumentShape.PARTITION)
        self.assertEqual(report.invariants, [ENTRY_COUNT, COVERAGE])
        self.assertEqual(sorted(report.for_invariant(COVERAGE)[0].keys), [21, 26, 40, 51])

    def test_gates_not_a_list(self):
        document = center_document()
        document[0]["gates"] = "64, 61, 63"
        report = self.validator.validate(document, DocumentShape.PARTITION)
        self.assertIn(CONTAINER_GATES, report.invariants)


class TestGroupingDocuments(ValidatorTestCase):
    """Claimed gate lists are re-derived, never trusted."""

    def test_infer_quarters(self):
        report = self.validator.validate(grouping_document(self.root, GroupingKind.QUARTER),
                                         DocumentShape.GROUPING)
        self.assertTrue(report.passed)

    def test_infer_lower_trigram_from_numbers_ring(self):
        document = [{"groupName": name, "gates": gates}
                    for name, gates in LOWER_TRIGRAM_GROUPS.items()]
        report = self.validator.validate(document, DocumentShape.GROUPING)
        self.assertEqual(len(report), 0)

    def test_drift_between_faces(self):
        """Gate 34 moved from Hades to Maia: both groups reported."""
        document = grouping_document(self.root, GroupingKind.FACE)
        groups = {e["groupName"]: e for e in document}
        groups["Hades"]["gates"] = [g for g in groups["Hades"]["gates"] if g != 34]
        groups["Maia"]["gates"] = groups["Maia"]["gates"] + [34]
        report = self.validator.validate(document, DocumentShape.GROUPING)
        self.assertEqual(report.invariants, [GROUP_MEMBERSHIP])
        self.assertEqual(sorted(v.keys[0] for v in report), ["Hades", "Maia"])

    def test_stale_member(self):
        document = grouping_document(self.root, GroupingKind.FACE)
        hades = next(e for e in document if e["groupName"] == "Hades")
        hades["gates"] = [2 if g == 34 else g for g in hades["gates"]]
        report = self.validator.validate(document, DocumentShape.GROUPING,
                                         ValidationOptions(grouping=GroupingKind.FACE))
        self.assertEqual(len(report), 1)
        self.assertIn("missing [34]", report.violations[0].message)
        self.assertIn("not derived [2]", report.violations[0].message)

    def test_unknown_group_name(self):
        document = grouping_document(self.root, GroupingKind.QUARTER)
        document[0]["groupName"] = "Quarter of Nothing"
        report = self.validator.validate(document, DocumentShape.GROUPING,
                                         ValidationOptions(grouping=GroupingKind.QUARTER))
        self.assertEqual(report.invariants, [GROUP_NAME, COVERAGE])

    def test_missing_group(self):
        document = grouping_document(self.root, GroupingKind.QUARTER)[:3]
        report = self.validator.validate(document, DocumentShape.GROUPING,
                                         ValidationOptions(grouping=GroupingKind.QUARTER))
        self.assertEqual(report.invariants, [ENTRY_COUNT])
        self.assertEqual(report.violations[0].keys, ("Civilisation",))


class TestKnowledgeSystemEnvelope(ValidatorTestCase):
    """verify_knowledge_system(): envelope first, then the entries."""

    def test_complete_system(self):
        system = {"systemName": "The 36 Channels", "version": "1.0.0",
                  "dataArchitecture": "relational", "mappings": channel_document()}
        report = self.validator.verify_knowledge_system(system)
        self.assertTrue(report.passed)
        self.assertEqual(report.system_name, "The 36 Channels")
        self.assertIs(report.shape, DocumentShape.CONNECTION)

    def test_missing_version_is_warning(self):
        system = {"systemName": "Gene Keys", "dataArchitecture": "gate",
                  "mappings": gate_document()}
        with self.assertLogs('gatewheel.docking', level='WARNING'):
            report = self.validator.verify_knowledge_system(system)
        self.assertTrue(report.passed)
        self.assertEqual(len(report.warnings), 1)
        self.assertEqual(report.warnings[0].invariant, VERSION)
        self.assertIs(report.warnings[0].severity, Severity.WARNING)

    def test_missing_system_name(self):
        system = {"version": "1.0", "mappings": gate_document()}
        report = self.validator.verify_knowledge_system(system, shape=DocumentShape.GATE)
        self.assertFalse(report.passed)
        self.assertEqual(report.invariants, [SYSTEM_NAME])

    def test_missing_mappings(self):
        report = self.validator.verify_knowledge_system({"systemName": "Empty", "version": "1"})
        self.assertEqual(report.invariants, [MAPPINGS])
        self.assertFalse(report.passed)

    def test_unknown_architecture(self):
        system = {"systemName": "Mystery", "version": "1", "mappings": gate_document()}
        report = self.validator.verify_knowledge_system(system)
        self.assertEqual(report.invariants, [SHAPE])

    def test_partial_completeness(self):
        system = {"systemName": "Work in progress", "version": "0.1",
                  "dataArchitecture": "gate", "completeness": "partial",
                  "mappings": gate_document()[:12]}
        self.assertTrue(self.validator.verify_knowledge_system(system).passed)

    def test_full_completeness_still_counts(self):
        system = {"systemName": "Claims full", "version": "1",
                  "dataArchitecture": "gate", "completeness": "full",
                  "mappings": gate_document()[:12]}
        report = self.validator.verify_knowledge_system(system)
        self.assertEqual(report.invariants, [ENTRY_COUNT])

    def test_not_an_object(self):
        report = self.validator.verify_knowledge_system([1, 2, 3])
        self.assertFalse(report.passed)

    def test_report_rendering(self):
        system = {"systemName": "Gene Keys", "dataArchitecture": "gate",
                  "mappings": gate_document()[:63]}
        with self.assertLogs('gatewheel.docking', level='WARNING'):
            report = self.validator.verify_knowledge_system(system)
        data = report.to_dict()
        self.assertEqual(data["shape"], "gate")
        self.assertFalse(data["passed"])
        self.assertEqual(data["violations"][1]["keys"], [64])
        summary = report.summary()
        self.assertIn("Gene Keys (gate)", summary)
        self.assertIn("FAILED (1 errors, 1 warnings)", summary)


class TestStrategyRegistry(ValidatorTestCase):
    """A sixth shape is a new strategy, nothing else."""

    def tearDown(self):
        docking._STRATEGIES.pop("planet", None)

    def test_register_new_shape(self):
        planets = ["Sun", "Earth", "Moon", "North Node", "South Node", "Mercury",
                   "Venus", "Mars", "Jupiter", "Saturn", "Uranus", "Neptune", "Pluto"]

        @register_strategy("planet")
        class PlanetStrategy(ShapeStrategy):
            def check(self, entries):
                names = [e.get("planet") for e in entries if self.is_mapping(0, e)]
                self.check_coverage("planets", len(planets), len(entries), names, planets)

        document = [{"planet": p} for p in planets]
        self.assertEqual(len(self.validator.validate(document, "planet")), 0)

        report = self.validator.validate(document[:-1], "planet")
        self.assertEqual(report.violations[0].keys, ("Pluto",))
        self.assertEqual(report.violations[0].invariant, ENTRY_COUNT)

    def test_report_is_plain_dataclass(self):
        report = ValidationReport()
        self.assertTrue(report.passed)
        self.assertEqual(report.invariants, [])


if __name__ == "__main__":
    unittest.main()
