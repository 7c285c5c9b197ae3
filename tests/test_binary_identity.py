"""
Tests for Binary Identity Table: the ground truth

Validates:
    1. Packaged table loads and verifies
    2. 64 distinct 6-bit binaries
    3. Reference compositions (gate 1 = 111111, gate 2 = 000000 ...)
    4. Reverse lookup and complement
    5. Corrupt tables are rejected with every problem listed
    6. Out-of-range gates raise InvalidGateError
"""

import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from gatewheel.binary_identity import BinaryIdentityTable, load_binary_table, complement
from gatewheel.errors import DataIntegrityError, InvalidGateError
from reference_data import HEXAGRAM_REFERENCE


class TestPackagedTable(unittest.TestCase):
    """The shipped table satisfies every load-time invariant."""

    @classmethod
    def setUpClass(cls):
        cls.table = load_binary_table()

    def test_sixty_four_entries(self):
        self.assertEqual(len(self.table), 64)
        self.assertEqual(list(self.table), list(range(1, 65)))

    def test_every_binary_is_six_bits(self):
        for gate in range(1, 65):
            binary = self.table.get_binary(gate)
            self.assertEqual(len(binary), 6, f"gate {gate}")
            self.assertTrue(set(binary) <= {'0', '1'}, f"gate {gate}: {binary}")

    def test_binaries_pairwise_distinct(self):
        binaries = [self.table.get_binary(g) for g in range(1, 65)]
        self.assertEqual(len(set(binaries)), 64)

    def test_reference_binaries(self):
        """Stored binaries match the traditional compositions."""
        for gate, (binary, _, _) in HEXAGRAM_REFERENCE.items():
            self.assertEqual(self.table.get_binary(gate), binary, f"gate {gate}")

    def test_bits_tuple_line_one_first(self):
        """Gate 3 = 100010: line 1 yang, line 2 yin, line 5 yang."""
        self.assertEqual(self.table.bits(3), (1, 0, 0, 0, 1, 0))

    def test_reverse_lookup(self):
        for gate in range(1, 65):
            self.assertEqual(self.table.gate_for_binary(self.table.get_binary(gate)), gate)

    def test_reverse_lookup_unknown(self):
        with self.assertRaises(DataIntegrityError):
            self.table.gate_for_binary('1111111')

    def test_invalid_gates(self):
        for bad in (0, 65, -1, 1.5, '1', None, True):
            with self.assertRaises(InvalidGateError, msg=repr(bad)):
                self.table.get_binary(bad)

    def test_invalid_gate_is_value_error(self):
        with self.assertRaises(ValueError):
            self.table.get_binary(99)

    def test_view_is_read_only(self):
        with self.assertRaises(TypeError):
            self.table.gates[1] = '000000'

    def test_to_dict_round_trip(self):
        rebuilt = BinaryIdentityTable(self.table.to_dict()["gates"])
        self.assertEqual(rebuilt, self.table)


class TestComplement(unittest.TestCase):

    def test_complement(self):
        self.assertEqual(complement('111111'), '000000')
        self.assertEqual(complement('110100'), '001011')

    def test_complement_is_involutive(self):
        self.assertEqual(complement(complement('100010')), '100010')


class TestCorruptTables(unittest.TestCase):
    """Construction lists every broken invariant."""

    def setUp(self):
        self.gates = dict(load_binary_table().gates)

    def test_duplicate_binary(self):
        self.gates[2] = '111111'
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        self.assertTrue(any("share binary 111111" in p for p in ctx.exception.problems))

    def test_missing_gate(self):
        del self.gates[64]
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        problems = " ".join(ctx.exception.problems)
        self.assertIn("expected 64 entries, found 63", problems)
        self.assertIn("missing gates [64]", problems)

    def test_malformed_binary(self):
        self.gates[5] = '11101x'
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        self.assertTrue(any("gate 5" in p for p in ctx.exception.problems))

    def test_wrong_length(self):
        self.gates[7] = '0100'
        with self.assertRaises(DataIntegrityError):
            BinaryIdentityTable(self.gates)

    def test_all_problems_reported(self):
        """Not fail-fast: two problems, two entries."""
        self.gates[2] = '111111'
        self.gates[5] = 'abc'
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        self.assertEqual(len(ctx.exception.problems), 2)

    def test_fractional_key_rejected(self):
        """1.9 is not gate 1."""
        self.gates[1.9] = self.gates.pop(1)
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        problems = " ".join(ctx.exception.problems)
        self.assertIn("missing gates [1]", problems)
        self.assertIn("unexpected keys ['1.9']", problems)

    def test_non_integer_keys_rejected(self):
        for key in ("1.0", 64.0, None):
            gates = dict(self.gates)
            gates[key] = gates.pop(64)
            with self.assertRaises(DataIntegrityError, msg=repr(key)):
                BinaryIdentityTable(gates)

    def test_same_gate_twice(self):
        self.gates["5"] = self.gates[5]
        with self.assertRaises(DataIntegrityError) as ctx:
            BinaryIdentityTable(self.gates)
        self.assertTrue(any("same gate more than once [5]" in p for p in ctx.exception.problems))

    def test_string_keys_accepted(self):
        table = BinaryIdentityTable({str(g): b for g, b in self.gates.items()})
        self.assertEqual(table.get_binary(1), '111111')


class TestLoadFromFile(unittest.TestCase):

    def test_nested_binary_objects(self):
        """{"gates": {"1": {"binary": ...}}} layout is accepted."""
        gates = {str(g): {"binary": b} for g, b in load_binary_table().gates.items()}
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "binary.json")
            with open(path, 'w') as f:
                json.dump({"gates": gates}, f)
            table = load_binary_table(path)
        self.assertEqual(table.get_binary(64), '010101')

    def test_corrupt_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "binary.json")
            with open(path, 'w') as f:
                json.dump({"gates": {"1": "111111"}}, f)
            with self.assertRaises(DataIntegrityError):
                load_binary_table(path)


if __name__ == "__main__":
    unittest.main()
