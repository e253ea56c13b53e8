import json
import logging
from logging.handlers import TimedRotatingFileHandler
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import main


class TestRun(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config = os.path.join(self.temp_dir.name, "calculator.json")
        with open(self.config, 'w', encoding='utf-8') as f:
            f.write('{"log_file": "%s"}' % os.path.join(self.temp_dir.name, "calc.log").replace("\\", "/"))

    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            if isinstance(handler, TimedRotatingFileHandler):
                root.removeHandler(handler)
                handler.close()
        self.temp_dir.cleanup()

    def test_expression(self):
        with patch("builtins.print") as mock_print:
            self.assertEqual(0, main.run(["--config", self.config, "-e", "2^3^2"]))
        mock_print.assert_called_once_with("512")

    def test_expression_error(self):
        with patch("builtins.print") as mock_print:
            self.assertEqual(1, main.run(["--config", self.config, "-e", "1 + x"]))
        mock_print.assert_called_once_with("Invalid characters were detected in the expression.")

    def test_negative_expression(self):
        for argv in (["-e", "-3+5"], ["--expression", "-3+5"], ["-e=-3+5"]):
            with self.subTest(argv=argv):
                with patch("builtins.print") as mock_print:
                    self.assertEqual(0, main.run(["--config", self.config] + argv))
                mock_print.assert_called_once_with("2")

    def test_expression_before_config(self):
        args = main.parse_args(["-e", "-1 - -2", "--config", "other.json"])
        self.assertEqual("-1 - -2", args.expression)
        self.assertEqual("other.json", args.config)

    def test_bad_log_level_does_not_stop_startup(self):
        with open(self.config, 'w', encoding='utf-8') as f:
            json.dump({"log_file": os.path.join(self.temp_dir.name, "calc.log"), "log_level": "verbose"}, f)
        with patch("builtins.print") as mock_print, \
                patch.object(main.logging, "basicConfig") as mock_basic_config, \
                patch("settings.logging.error") as mock_error:
            self.assertEqual(0, main.run(["--config", self.config, "-e", "1+1"]))
        mock_print.assert_called_once_with("2")
        mock_error.assert_called_once()
        self.assertEqual("INFO", mock_basic_config.call_args.kwargs["level"])

    def test_repl_is_default(self):
        with patch.object(main, "run_repl", new=MagicMock()) as mock_repl, \
                patch.object(main.asyncio, "run") as mock_run:
            self.assertEqual(0, main.run(["--config", self.config]))
        mock_repl.assert_called_once_with(">> ")
        mock_run.assert_not_called()

    def test_bot_mode(self):
        with patch.object(main, "run_bot", new=MagicMock()) as mock_bot, \
                patch.object(main.asyncio, "run") as mock_run:
            main.run(["--config", self.config, "--bot"])
        mock_bot.assert_called_once_with("ws://localhost:3001", ['.', '。'])
        mock_run.assert_called_once_with(mock_bot.return_value)

    def test_bot_and_expression_are_exclusive(self):
        with self.assertRaises(SystemExit), patch("sys.stderr"):
            main.parse_args(["--bot", "-e", "1"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
