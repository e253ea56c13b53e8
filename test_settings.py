import json
import os
import tempfile
import unittest

from settings import Settings, load_data, load_settings


class TestLoadSettings(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "calculator.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, content: str) -> None:
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(content)

    def test_missing_file_uses_defaults(self):
        self.assertEqual(Settings(), load_settings(self.path))
        self.assertEqual({}, load_data(self.path))

    def test_overrides_and_unknown_keys(self):
        self.write(json.dumps({"uri": "ws://example:9000", "prompt": "> ", "colour": "red"}))
        settings = load_settings(self.path)
        self.assertEqual("ws://example:9000", settings.uri)
        self.assertEqual("> ", settings.prompt)
        self.assertEqual("calculator.log", settings.log_file)
        self.assertEqual(['.', '。'], settings.command_prefixes)

    def test_broken_file(self):
        self.write("{not json")
        with self.assertLogs(level="ERROR"):
            self.assertEqual(Settings(), load_settings(self.path))

    def test_log_level_is_case_insensitive(self):
        self.write(json.dumps({"log_level": "debug"}))
        self.assertEqual("debug", load_settings(self.path).log_level)

    def test_unknown_log_level_falls_back(self):
        for level in ["verbose", 10, None]:
            with self.subTest(level=level):
                self.write(json.dumps({"log_level": level, "prompt": "> "}))
                with self.assertLogs(level="ERROR"):
                    settings = load_settings(self.path)
                self.assertEqual("INFO", settings.log_level)
                self.assertEqual("> ", settings.prompt)

    def test_non_object_file(self):
        self.write("[1, 2]")
        with self.assertLogs(level="ERROR"):
            self.assertEqual({}, load_data(self.path))


if __name__ == "__main__":
    unittest.main(verbosity=2)
