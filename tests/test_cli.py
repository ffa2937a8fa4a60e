"""
Tests for the CLI commands.

Uses Python's unittest module.
Tests argument parsing, command output and exit codes.
"""

from __future__ import annotations

import io
import json
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import MagicMock, patch

from pspassess.cli import (
    EXIT_FAILURE,
    EXIT_MISSING_ARGUMENTS,
    EXIT_OK,
    EXIT_USAGE_ERROR,
    cmd_assess,
    cmd_build,
    cmd_questions,
    create_parser,
    main,
    set_output_mode,
)
from pspassess.risks.client import RiskRegistryConnectionError

ORGANIZATION_YAML = """\
organization:
  companyFullName: Acme Health, Inc.
  companyShortName: Acme
  companyEmailDomain: acmehealth.example
  securityOfficerName: Jane Roe
  isHIPAABusinessAssociate: true
  hasRiskRegister: true
  hasSecurityTrainingProgram: true
  hasIncidentResponsePlan: true
  backupsEncrypted: true
  backupsTested: true
  hasVulnerabilityScanning: true
  hasMediaDisposalProcess: true
  encryptsDataAtRest: true
  encryptsDataInTransit: true
  hasCentralizedLogging: true
  mfaEnforced: true
"""

ANSWERS_YAML = """\
hasRiskAssessmentGap: yes
lastRiskAssessmentDate: 2024-02-01
hasPenTestGap: yes
lastPenTestDate: 2024-05-01
lastPenTestProvider: Example Security LLC
penTestFrequency: annually
nextPenTestDate: 2025-05-01
hasSecurityAwarenessTrainingGap: yes
hasBusinessAssociateAgreementGap: yes
hasContingencyPlanTestGap: yes
hasAccessReviewGap: no
"""


class TestArgumentParser(unittest.TestCase):
    """Tests for CLI argument parsing."""

    def setUp(self) -> None:
        """Set up parser for tests."""
        self.parser = create_parser()

    def test_version_argument(self) -> None:
        """Test --version argument."""
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                self.parser.parse_args(["--version"])
        self.assertEqual(cm.exception.code, 0)

    def test_no_command(self) -> None:
        args = self.parser.parse_args([])
        self.assertIsNone(args.command)

    def test_assess_arguments(self) -> None:
        """Test assess command options."""
        args = self.parser.parse_args(
            ["assess", "-s", "hipaa", "-c", "org.yaml", "-o", "out", "-r", "-a", "acme", "-k", "tok"]
        )
        self.assertEqual(args.command, "assess")
        self.assertEqual(args.standard, "hipaa")
        self.assertEqual(args.config, "org.yaml")
        self.assertEqual(args.output, "out")
        self.assertTrue(args.include_risks)
        self.assertEqual(args.account, "acme")
        self.assertEqual(args.api_token, "tok")
        self.assertEqual(args.format, "text")

    def test_assess_defaults(self) -> None:
        args = self.parser.parse_args(["assess"])
        self.assertIsNone(args.standard)
        self.assertFalse(args.include_risks)
        self.assertIsNone(args.answers)

    def test_build_requires_config(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                self.parser.parse_args(["build"])
        self.assertEqual(cm.exception.code, 2)

    def test_questions_requires_standard(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(["questions"])


class CliTestCase(unittest.TestCase):
    """Creates organization and answers files in a temporary directory."""

    def setUp(self) -> None:
        set_output_mode(quiet=False, verbose=0)
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        self.settings = str(self.root / "settings.yaml")
        self.org_path = self.root / "org.yaml"
        self.org_path.write_text(ORGANIZATION_YAML)
        self.answers_path = self.root / "answers.yaml"
        self.answers_path.write_text(ANSWERS_YAML)
        self.output_dir = self.root / "assessments"
        self.parser = create_parser()

    def tearDown(self) -> None:
        shutil.rmtree(self.temp_dir)

    def run_command(self, argv: list[str]) -> tuple[int, str, str]:
        args = self.parser.parse_args(["--settings", self.settings] + argv)
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = args.func(args)
        return code, stdout.getvalue(), stderr.getvalue()

    def run_main(self, argv: list[str]) -> int:
        with patch("sys.argv", ["pspassess", "--settings", self.settings] + argv):
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
                with self.assertRaises(SystemExit) as cm:
                    main()
        return cm.exception.code


class TestQuestionsCommand(CliTestCase):
    """Tests for the questions command."""

    def test_json(self) -> None:
        code, out, _ = self.run_command(["questions", "-s", "HIPAA", "--format", "json"])
        self.assertEqual(code, EXIT_OK)
        data = json.loads(out)
        self.assertEqual(data[0]["name"], "hasRiskAssessmentGap")
        pen_test = next(q for q in data if q["name"] == "hasPenTestGap")
        self.assertEqual(pen_test["topic"], "Pen Test")
        self.assertEqual(len(pen_test["dependents"]), 4)

    def test_table(self) -> None:
        code, out, _ = self.run_command(["questions", "-s", "hipaa"])
        self.assertEqual(code, EXIT_OK)
        self.assertIn("HIPAA interview questions", out)
        self.assertIn("hasPenTestGap (gap_flag)", out)

    def test_unknown_standard_exit_code(self) -> None:
        self.assertEqual(self.run_main(["questions", "-s", "pci"]), EXIT_USAGE_ERROR)


class TestAssessCommand(CliTestCase):
    """Tests for the assess command."""

    def test_missing_arguments(self) -> None:
        code, _, err = self.run_command(["assess", "-s", "hipaa"])
        self.assertEqual(code, EXIT_MISSING_ARGUMENTS)
        self.assertIn("Missing required arguments", err)

    def test_writes_report(self) -> None:
        code, out, _ = self.run_command(
            [
                "assess",
                "-s",
                "hipaa",
                "-c",
                str(self.org_path),
                "--answers",
                str(self.answers_path),
                "-o",
                str(self.output_dir),
            ]
        )
        self.assertEqual(code, EXIT_OK)
        report = self.output_dir / "hipaa-self-assessment.md"
        self.assertTrue(report.exists())
        content = report.read_text()
        self.assertIn("Access Review", content)
        self.assertIn(
            'Gaps identified: 1. See "Gaps, Findings and Action Items" section in report.', out
        )

    def test_no_gaps_message(self) -> None:
        self.answers_path.write_text(ANSWERS_YAML.replace("hasAccessReviewGap: no", "hasAccessReviewGap: yes"))
        code, out, _ = self.run_command(
            [
                "assess",
                "-s",
                "hipaa",
                "-c",
                str(self.org_path),
                "--answers",
                str(self.answers_path),
                "-o",
                str(self.output_dir),
            ]
        )
        self.assertEqual(code, EXIT_OK)
        self.assertIn("No gaps identified.", out)

    def test_json_output(self) -> None:
        code, out, _ = self.run_command(
            [
                "assess",
                "-s",
                "hipaa",
                "-c",
                str(self.org_path),
                "--answers",
                str(self.answers_path),
                "-o",
                str(self.output_dir),
                "--format",
                "json",
            ]
        )
        self.assertEqual(code, EXIT_OK)
        data = json.loads(out)
        self.assertEqual(data["gap_count"], 1)
        self.assertEqual(data["report_path"], str(self.output_dir / "hipaa-self-assessment.md"))

    def test_prompts_when_no_answers_file(self) -> None:
        responses = iter(["y", "2024-02-01", "y", "2024-05-01", "Example", "", "2025-05-01", "y", "y", "y", "y"])
        with patch("builtins.input", lambda prompt: next(responses)):
            code, out, _ = self.run_command(
                ["assess", "-s", "hipaa", "-c", str(self.org_path), "-o", str(self.output_dir)]
            )
        self.assertEqual(code, EXIT_OK)
        self.assertIn("No gaps identified.", out)

    def test_prompts_skip_details_of_missing_controls(self) -> None:
        responses = iter(["n", "n", "y", "y", "y", "y"])
        with patch("builtins.input", lambda prompt: next(responses)):
            code, out, _ = self.run_command(
                ["assess", "-s", "hipaa", "-c", str(self.org_path), "-o", str(self.output_dir)]
            )
        self.assertEqual(code, EXIT_OK)
        self.assertIn("Gaps identified: 2.", out)
        content = (self.output_dir / "hipaa-self-assessment.md").read_text()
        self.assertIn("Performed by: *TBD*", content)

    def test_risk_client_closed(self) -> None:
        risk_client = MagicMock()
        risk_client.query_risks.return_value = []
        with patch("pspassess.cli._create_risk_client", return_value=risk_client):
            code, _, _ = self.run_command(
                [
                    "assess",
                    "-s",
                    "hipaa",
                    "-c",
                    str(self.org_path),
                    "--answers",
                    str(self.answers_path),
                    "-o",
                    str(self.output_dir),
                    "-r",
                ]
            )
        self.assertEqual(code, EXIT_OK)
        risk_client.query_risks.assert_called_once_with()
        risk_client.close.assert_called_once_with()

    def test_risk_client_closed_on_failure(self) -> None:
        risk_client = MagicMock()
        risk_client.query_risks.side_effect = RiskRegistryConnectionError("down")
        with patch("pspassess.cli._create_risk_client", return_value=risk_client):
            with self.assertRaises(RiskRegistryConnectionError):
                self.run_command(
                    [
                        "assess",
                        "-s",
                        "hipaa",
                        "-c",
                        str(self.org_path),
                        "--answers",
                        str(self.answers_path),
                        "-r",
                    ]
                )
        risk_client.close.assert_called_once_with()

    def test_invalid_answers_file(self) -> None:
        self.answers_path.write_text("lastPenTestDate: someday\n")
        code, _, err = self.run_command(
            ["assess", "-s", "hipaa", "-c", str(self.org_path), "--answers", str(self.answers_path)]
        )
        self.assertEqual(code, EXIT_USAGE_ERROR)
        self.assertIn("Answers error", err)

    def test_unknown_standard(self) -> None:
        code = self.run_main(["assess", "-s", "pci", "-c", str(self.org_path)])
        self.assertEqual(code, EXIT_USAGE_ERROR)

    def test_incomplete_organization(self) -> None:
        self.org_path.write_text("organization:\n  companyFullName: Acme\n")
        code = self.run_main(["assess", "-s", "hipaa", "-c", str(self.org_path)])
        self.assertEqual(code, EXIT_USAGE_ERROR)

    def test_missing_templates(self) -> None:
        code = self.run_main(
            ["assess", "-s", "hipaa", "-c", str(self.org_path), "-t", str(self.root / "nope")]
        )
        self.assertEqual(code, EXIT_FAILURE)

    def test_risks_without_credentials(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            code = self.run_main(["assess", "-s", "hipaa", "-c", str(self.org_path), "-r"])
        self.assertEqual(code, EXIT_USAGE_ERROR)

    def test_no_command(self) -> None:
        self.assertEqual(self.run_main([]), EXIT_MISSING_ARGUMENTS)


class TestBuildCommand(CliTestCase):
    """Tests for the build command."""

    def test_renders_documents(self) -> None:
        docs = self.root / "docs"
        code, out, _ = self.run_command(["build", "-c", str(self.org_path), "-o", str(docs)])
        self.assertEqual(code, EXIT_OK)
        self.assertIn("Rendered 15 documents", out)
        self.assertTrue((docs / "procedures" / "cp-roles.md").exists())


if __name__ == "__main__":
    unittest.main()
