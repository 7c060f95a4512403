from __future__ import annotations

import unittest

from medstats.constants import STANDARD
from medstats.records import EMPTY_RANGE, NOT_APPLICABLE_RANGE, DateRange, StudyRecord


class StudyRecordTests(unittest.TestCase):
    def test_from_mapping_trims_and_blanks(self):
        record = StudyRecord.from_mapping({"patient_id": " 12 ", "modality": None, "unknown": "x"})
        self.assertEqual(record.patient_id, "12")
        self.assertEqual(record.modality, "")
        self.assertEqual(record.subcategory, STANDARD)

    def test_to_dict_includes_subcategory(self):
        values = StudyRecord(patient_id="1").to_dict()
        self.assertEqual(values["patient_id"], "1")
        self.assertEqual(values["subcategory"], STANDARD)


class DateRangeTests(unittest.TestCase):
    def test_display_needs_both_bounds(self):
        self.assertEqual(DateRange("01/03/2024", "").display(), "")
        self.assertEqual(DateRange("01/03/2024", "05/03/2024").display(" - "), "01/03/2024 - 05/03/2024")

    def test_sentinels(self):
        self.assertTrue(EMPTY_RANGE.is_empty)
        self.assertFalse(EMPTY_RANGE.is_applicable)
        self.assertFalse(NOT_APPLICABLE_RANGE.is_empty)
        self.assertFalse(NOT_APPLICABLE_RANGE.is_applicable)
        self.assertTrue(DateRange("a", "b").is_applicable)


if __name__ == "__main__":
    unittest.main()
