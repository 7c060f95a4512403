from __future__ import annotations

import unittest
from pathlib import Path

from medstats import __version__
from medstats.contracts import CONTRACT_VERSIONS, build_contract, build_payload, utc_now_iso


class ContractTests(unittest.TestCase):
    def test_build_contract_uses_registered_version(self):
        self.assertEqual(
            build_contract("medstats.summary"),
            {"name": "medstats.summary", "version": CONTRACT_VERSIONS["medstats.summary"]},
        )

    def test_unknown_contract_raises(self):
        with self.assertRaises(KeyError):
            build_contract("medstats.unknown")

    def test_utc_now_iso_is_second_precision_zulu(self):
        stamp = utc_now_iso()
        self.assertTrue(stamp.endswith("Z"))
        self.assertNotIn(".", stamp)

    def test_build_payload_wraps_body_with_run_summary(self):
        payload = build_payload(
            "medstats.records",
            {"records": []},
            command="records",
            input_path=Path("export.txt"),
            output_path=Path("out/records.json"),
            metrics={"parsed_rows": 3},
            warnings=["one"],
        )
        self.assertEqual(payload["contract"]["name"], "medstats.records")
        self.assertEqual(payload["schema_version"], CONTRACT_VERSIONS["medstats.records"])
        self.assertEqual(payload["tool_version"], __version__)
        self.assertEqual(payload["records"], [])
        run_summary = payload["run_summary"]
        self.assertEqual(run_summary["tool"], "medstats")
        self.assertEqual(run_summary["command"], "records")
        self.assertEqual(run_summary["status"], "ok")
        self.assertEqual(run_summary["input_file"], "export.txt")
        self.assertEqual(run_summary["output_file"], str(Path("out/records.json")))
        self.assertEqual(run_summary["warnings_count"], 1)
        self.assertEqual(run_summary["metrics"], {"parsed_rows": 3})

    def test_build_payload_without_output(self):
        payload = build_payload("medstats.export", {}, command="export", input_path=Path("x.txt"))
        self.assertIsNone(payload["run_summary"]["output_file"])
        self.assertEqual(payload["run_summary"]["warnings"], [])


if __name__ == "__main__":
    unittest.main()
