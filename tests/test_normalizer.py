from __future__ import annotations

import unittest

from medstats.normalizer import normalize


class NormalizeTests(unittest.TestCase):
    def test_strips_accents_and_punctuation(self):
        self.assertEqual(normalize("Tórax (Contraste)"), "TORAX CONTRASTE")

    def test_punctuation_becomes_single_space(self):
        self.assertEqual(normalize("  a.b,c;d:e-f  "), "A B C D E F")

    def test_collapses_whitespace(self):
        self.assertEqual(normalize("Fecha\t  Realizado\n"), "FECHA REALIZADO")

    def test_tilde_letters_lose_their_mark(self):
        self.assertEqual(normalize("Señal"), "SENAL")

    def test_none_and_empty_give_empty_string(self):
        self.assertEqual(normalize(None), "")
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize(" ;:- "), "")

    def test_marks_are_removed_before_upper_casing(self):
        self.assertEqual(normalize("\u1fb3"), "\u0391")

    def test_is_idempotent(self):
        samples = [
            "Angiotac de Tórax",
            "DESCRIPCIÓN",
            "Urografía excretora (control)",
            "Histerosalpingografía; bilateral",
            "ID  paciente",
        ]
        for sample in samples:
            once = normalize(sample)
            self.assertEqual(normalize(once), once, sample)


if __name__ == "__main__":
    unittest.main()
