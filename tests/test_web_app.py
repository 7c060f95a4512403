from __future__ import annotations

import importlib.util
import sys
import unittest
from pathlib import Path
from unittest import mock


ROOT = Path(__file__).resolve().parents[1]
WEB_APP = ROOT / "web" / "app.py"
HEADER = "ID PACIENTE|NOMBRE PACIENTE|DESCRIPCIÓN|REGIÓN|FECHA REALIZADO|MODALIDAD|REALIZADO POR|ESTADO REPORTE|FECHA REPORTE"


def load_module(module_path: Path, module_name: str):
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    module = importlib.util.module_from_spec(spec)
    assert spec and spec.loader
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


WEB_APP_MODULE = load_module(WEB_APP, "medstats_web_app_tests")


class FakeUpload:
    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self._raw = text.encode("utf-8")

    def getvalue(self) -> bytes:
        return self._raw


def export_text(*rows: str) -> str:
    return "\n".join([HEADER, *rows, ""])


class LoadUploadTests(unittest.TestCase):
    def setUp(self):
        self.state: dict = {}
        patcher = mock.patch.object(WEB_APP_MODULE.st, "session_state", self.state)
        patcher.start()
        self.addCleanup(patcher.stop)
        WEB_APP_MODULE.ensure_state()

    def test_same_name_with_new_content_is_reloaded(self):
        first = FakeUpload("export.txt", export_text("1|Ana|Rx|TORAX|01/03/2024|CR|Dr. X|FIRMADO|"))
        WEB_APP_MODULE.load_upload(first)
        self.assertEqual(len(self.state["loaded"]["records"]), 1)

        edited = FakeUpload(
            "export.txt",
            export_text(
                "1|Ana|Rx|TORAX|01/03/2024|CR|Dr. X|FIRMADO|",
                "2|Luis|Angiotac|TORAX|02/03/2024|CT|Dr. X|FIRMADO|",
            ),
        )
        WEB_APP_MODULE.load_upload(edited)
        self.assertEqual(len(self.state["loaded"]["records"]), 2)

    def test_identical_upload_is_parsed_once(self):
        upload = FakeUpload("export.txt", export_text("1|Ana|Rx|TORAX|01/03/2024|CR|Dr. X|FIRMADO|"))
        with mock.patch.object(WEB_APP_MODULE, "load_bytes", wraps=WEB_APP_MODULE.load_bytes) as loader:
            WEB_APP_MODULE.load_upload(upload)
            WEB_APP_MODULE.load_upload(upload)
        self.assertEqual(loader.call_count, 1)

    def test_failed_load_can_be_retried_with_fixed_file(self):
        WEB_APP_MODULE.load_upload(FakeUpload("export.txt", "name|amount\nAlice|10\n"))
        self.assertIsNone(self.state["loaded"])
        self.assertIn("No valid header row found", self.state["load_error"])

        WEB_APP_MODULE.load_upload(FakeUpload("export.txt", export_text("1|Ana|Rx|TORAX|01/03/2024|CR|Dr. X|FIRMADO|")))
        self.assertIsNone(self.state["load_error"])
        self.assertEqual(self.state["loaded"]["file"], "export.txt")

    def test_clearing_the_uploader_resets_state(self):
        WEB_APP_MODULE.load_upload(FakeUpload("export.txt", export_text("1|Ana|Rx|TORAX|01/03/2024|CR|Dr. X|FIRMADO|")))
        WEB_APP_MODULE.load_upload(None)
        self.assertIsNone(self.state["loaded"])
        self.assertIsNone(self.state["loaded_key"])
        self.assertIsNone(self.state["load_error"])


if __name__ == "__main__":
    unittest.main()
