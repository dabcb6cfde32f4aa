from __future__ import annotations

import sys
import unittest
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from errors import InvariantViolation
from global_vars import GlobalVarTable, fingerprint

RED = {"paints": [{"type": "SOLID", "color": {"r": 255, "g": 0, "b": 0}}]}
GREEN = {"paints": [{"type": "SOLID", "color": {"r": 0, "g": 255, "b": 0}}]}


class GlobalVarTableTests(unittest.TestCase):
    def test_equal_styles_share_an_id(self) -> None:
        table = GlobalVarTable()
        first = table.intern("fill", RED)
        second = table.intern("fill", {"paints": [{"color": {"b": 0, "g": 0, "r": 255}, "type": "SOLID"}]})
        self.assertEqual(first, "fill_0")
        self.assertEqual(second, "fill_0")
        self.assertEqual(len(table), 1)

    def test_distinct_styles_get_new_ids(self) -> None:
        table = GlobalVarTable()
        self.assertEqual(table.intern("fill", RED), "fill_0")
        self.assertEqual(table.intern("fill", GREEN), "fill_1")
        self.assertEqual(table.intern("fill", RED), "fill_0")

    def test_counters_are_per_category(self) -> None:
        table = GlobalVarTable()
        table.intern("fill", RED)
        table.intern("fill", GREEN)
        # Same value under another category is a different style.
        self.assertEqual(table.intern("stroke", RED), "stroke_0")
        self.assertEqual(table.intern("typography", {"fontFamily": "Inter"}), "typography_0")
        self.assertEqual(set(table.as_dict()), {"fill_0", "fill_1", "stroke_0", "typography_0"})

    def test_as_dict_is_verbatim(self) -> None:
        table = GlobalVarTable()
        table.intern("layout", {"direction": "VERTICAL", "itemSpacing": 4})
        self.assertEqual(table.as_dict(), {"layout_0": {"direction": "VERTICAL", "itemSpacing": 4}})
        self.assertEqual(list(table.as_dict()["layout_0"]), ["direction", "itemSpacing"])
        self.assertIn("layout_0", table)
        self.assertEqual(table.get("layout_0"), {"direction": "VERTICAL", "itemSpacing": 4})

    def test_stored_values_are_independent_of_caller(self) -> None:
        table = GlobalVarTable()
        style = {"fontFamily": "Inter", "fontSize": 12}
        style_id = table.intern("typography", style)
        style["fontSize"] = 99
        self.assertEqual(table.get(style_id)["fontSize"], 12)

    def test_tables_do_not_share_state(self) -> None:
        a = GlobalVarTable()
        b = GlobalVarTable()
        a.intern("fill", RED)
        self.assertEqual(b.intern("fill", GREEN), "fill_0")
        self.assertEqual(len(a), 1)
        self.assertEqual(len(b), 1)

    def test_fingerprint_collision_is_fatal(self) -> None:
        table = GlobalVarTable()
        with mock.patch("global_vars.fingerprint", return_value='{"collide":true}'):
            table.intern("fill", RED)
            with self.assertRaises(InvariantViolation):
                table.intern("fill", GREEN)

    def test_fingerprint_is_order_independent(self) -> None:
        self.assertEqual(fingerprint({"a": 1, "b": [1, 2]}), fingerprint({"b": [1, 2], "a": 1}))
        self.assertNotEqual(fingerprint({"b": [1, 2]}), fingerprint({"b": [2, 1]}))


if __name__ == "__main__":
    unittest.main()
