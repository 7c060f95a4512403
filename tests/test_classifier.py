from __future__ import annotations

import unittest

from medstats.classifier import ClassificationRule, classify_record, classify_records, subcategory_for
from medstats.constants import CONTRASTADOS, ESPECIALES, STANDARD
from medstats.records import StudyRecord


class SubcategoryTests(unittest.TestCase):
    def test_contrast_keyword_applies_to_any_modality(self):
        self.assertEqual(subcategory_for("TAC de abdomen con contraste", "CT"), CONTRASTADOS)
        self.assertEqual(subcategory_for("Rx de colon con contraste", "CR"), CONTRASTADOS)
        self.assertEqual(subcategory_for("Ecografía contrastada", "US"), STANDARD)
        self.assertEqual(subcategory_for("Estudio contrastado", "US"), CONTRASTADOS)

    def test_ct_procedure_list(self):
        self.assertEqual(subcategory_for("Angiotac de tórax", "CT"), CONTRASTADOS)
        self.assertEqual(subcategory_for("Urotac", "CT"), CONTRASTADOS)
        self.assertEqual(subcategory_for("Angiotac de tórax", "CR"), STANDARD)

    def test_cr_procedure_list(self):
        self.assertEqual(subcategory_for("Esofagograma", "CR"), ESPECIALES)
        self.assertEqual(subcategory_for("Urografía excretora", "CR"), ESPECIALES)
        self.assertEqual(subcategory_for("Esofagograma", "CT"), STANDARD)

    def test_contrast_keyword_beats_special_procedure(self):
        self.assertEqual(subcategory_for("Esofagograma con contraste", "CR"), CONTRASTADOS)

    def test_us_and_mg_default_to_standard(self):
        self.assertEqual(subcategory_for("Mamografía bilateral", "MG"), STANDARD)
        self.assertEqual(subcategory_for("Angiotac", "US"), STANDARD)
        self.assertEqual(subcategory_for("Esofagograma", "MG"), STANDARD)

    def test_modality_is_trimmed_and_upper_cased(self):
        self.assertEqual(subcategory_for("angiotac", " ct "), CONTRASTADOS)
        self.assertEqual(subcategory_for("esofagograma", "cr"), ESPECIALES)

    def test_missing_description_is_standard(self):
        self.assertEqual(subcategory_for(None, "CT"), STANDARD)
        self.assertEqual(subcategory_for("", None), STANDARD)

    def test_custom_rules_replace_defaults(self):
        rule = ClassificationRule.build("doppler", ESPECIALES, ["Ecografía Doppler"], modalities=["us"])
        self.assertEqual(rule.keywords, ("ECOGRAFIA DOPPLER",))
        self.assertEqual(subcategory_for("Ecografía doppler renal", "US", rules=(rule,)), ESPECIALES)
        self.assertEqual(subcategory_for("Ecografía doppler renal", "CT", rules=(rule,)), STANDARD)
        self.assertEqual(subcategory_for("TAC con contraste", "CT", rules=(rule,)), STANDARD)


class ClassifyRecordTests(unittest.TestCase):
    def test_returns_new_record_with_subcategory(self):
        record = StudyRecord(patient_id="1", description="Angiotac", modality="CT")
        classified = classify_record(record)
        self.assertEqual(classified.subcategory, CONTRASTADOS)
        self.assertEqual(record.subcategory, STANDARD)
        self.assertEqual(classified.patient_id, "1")

    def test_reclassifies_stale_subcategory(self):
        record = StudyRecord(description="Rx de tórax", modality="CR", subcategory=ESPECIALES)
        self.assertEqual(classify_record(record).subcategory, STANDARD)

    def test_classify_records_keeps_order(self):
        records = [
            StudyRecord(patient_id="1", description="Esofagograma", modality="CR"),
            StudyRecord(patient_id="2", description="Rx", modality="CR"),
        ]
        classified = classify_records(records)
        self.assertEqual([r.patient_id for r in classified], ["1", "2"])
        self.assertEqual([r.subcategory for r in classified], [ESPECIALES, STANDARD])


if __name__ == "__main__":
    unittest.main()
