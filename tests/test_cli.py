import io
import os
import tempfile
import unittest
from unittest.mock import patch

from simulator import cli


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    @patch.dict(os.environ, {}, clear=True)
    @patch("simulator.cli.LoadTestOrchestrator")
    def test_flags_resolve_into_config(self, orchestrator_cls):
        code = cli.main([
            "--url", "https://example.com/",
            "--users", "2",
            "--output-dir", self.tmp.name,
            "--no-profiles",
            "--headed",
            "--max-hops", "4",
            "--seed", "9",
        ])

        self.assertEqual(code, 0)
        config = orchestrator_cls.call_args[0][0]
        self.assertEqual(config.concurrent_users, 2)
        self.assertFalse(config.simulate_profiles)
        self.assertFalse(config.headless)
        self.assertEqual(config.max_additional_hops, 4)
        self.assertEqual(config.seed, 9)
        orchestrator_cls.return_value.run.assert_called_once()

    @patch.dict(os.environ, {}, clear=True)
    @patch("simulator.cli.LoadTestOrchestrator")
    def test_invalid_config_exits_with_2(self, orchestrator_cls):
        code = cli.main(["--users", "0"])

        self.assertEqual(code, 2)
        orchestrator_cls.assert_not_called()

    @patch.dict(os.environ, {}, clear=True)
    @patch("simulator.cli.LoadTestOrchestrator")
    def test_unwritable_output_exits_with_1(self, orchestrator_cls):
        orchestrator_cls.return_value.run.side_effect = PermissionError("Permission denied: 'results.csv'")

        with patch("sys.stderr", new_callable=io.StringIO) as stderr:
            code = cli.main(["--url", "https://example.com/", "--output-dir", self.tmp.name])

        self.assertEqual(code, 1)
        self.assertIn("OUTPUT_ERROR", stderr.getvalue())
        self.assertIn("Permission denied", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
