"""
Tests for gap aggregation and report fragments.

Uses Python's unittest module.
"""

from __future__ import annotations

import unittest

from pspassess.assessment.aggregator import (
    NO_GAPS_IDENTIFIED,
    combine,
    generate_gap_list,
    generate_gap_summary,
    generate_policy_toc,
    generate_risk_list,
    generate_standard_controls_mapping,
)
from pspassess.assessment.answers import SEE_ABOVE, Gap
from pspassess.assessment.controls import AnnotatedRef, ControlStatus
from pspassess.config.organization import OrganizationConfig
from pspassess.render.renderer import CatalogEntry, TemplateCatalog
from pspassess.risks.client import RiskRecord


class TestCombine(unittest.TestCase):
    """Tests for combine."""

    def test_input_gaps_first(self) -> None:
        input_gaps = [Gap("Pen Test", SEE_ABOVE)]
        cp_gaps = [Gap("164.312(b)", "Logs"), Gap("164.312(d)", "MFA")]
        self.assertEqual(combine(input_gaps, cp_gaps), input_gaps + cp_gaps)

    def test_no_deduplication(self) -> None:
        gap = Gap("164.312(b)", "Logs")
        self.assertEqual(len(combine([gap], [gap])), 2)

    def test_empty(self) -> None:
        self.assertEqual(combine([], []), [])


class TestGapSummary(unittest.TestCase):
    """Tests for generate_gap_summary."""

    def setUp(self) -> None:
        self.config = OrganizationConfig(
            {"companyFullName": "Acme Health, Inc.", "companyShortName": "Acme"}
        )

    def test_no_gaps(self) -> None:
        summary = generate_gap_summary([], self.config, "hipaa")
        self.assertIn(NO_GAPS_IDENTIFIED, summary)
        self.assertIn("HIPAA", summary)
        self.assertIn("Acme", summary)

    def test_counts_gaps(self) -> None:
        gaps = [Gap("Pen Test", SEE_ABOVE), Gap("164.312(b)", "Logs"), Gap("164.312(b)", "x")]
        summary = generate_gap_summary(gaps, self.config, "hipaa")
        self.assertIn("3 gaps", summary)
        self.assertIn("2 areas", summary)
        self.assertIn("HIPAA", summary)
        self.assertNotIn(NO_GAPS_IDENTIFIED, summary)

    def test_singular(self) -> None:
        summary = generate_gap_summary([Gap("Pen Test", SEE_ABOVE)], self.config, "hipaa")
        self.assertIn("1 gap across 1 area.", summary)

    def test_falls_back_to_full_name(self) -> None:
        config = OrganizationConfig({"companyFullName": "Acme Health, Inc."})
        summary = generate_gap_summary([], config, "hipaa")
        self.assertIn("Acme Health, Inc.", summary)


class TestGapList(unittest.TestCase):
    """Tests for generate_gap_list."""

    def test_empty(self) -> None:
        self.assertEqual(generate_gap_list([]), "No gaps identified.")

    def test_one_row_per_gap_in_order(self) -> None:
        gaps = [Gap("Pen Test", SEE_ABOVE), Gap("164.312(b)", "Logs not kept")]
        lines = generate_gap_list(gaps).splitlines()
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[2], "| 1 | Pen Test | (see above) |")
        self.assertEqual(lines[3], "| 2 | 164.312(b) | Logs not kept |")

    def test_escapes_pipes(self) -> None:
        text = generate_gap_list([Gap("A", "one | two\nthree")])
        self.assertIn("one \\| two three", text)


class TestStandardControlsMapping(unittest.TestCase):
    """Tests for generate_standard_controls_mapping."""

    def setUp(self) -> None:
        self.config = OrganizationConfig({"companyShortName": "Acme"})

    def test_one_row_per_distinct_clause(self) -> None:
        refs = [
            AnnotatedRef("164.308(a)(2)", "Assigned Security Responsibility", ControlStatus.MET),
            AnnotatedRef("164.312(b)", "Audit Controls", ControlStatus.GAP, "Logs"),
            AnnotatedRef("164.308(a)(2)", "Assigned Security Responsibility", ControlStatus.GAP),
        ]
        lines = generate_standard_controls_mapping(refs, self.config).splitlines()
        self.assertEqual(lines[0], "| Requirement | Title | Acme Status |")
        rows = lines[2:]
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0], "| 164.308(a)(2) | Assigned Security Responsibility | Met |")
        self.assertEqual(rows[1], "| 164.312(b) | Audit Controls | Gap |")

    def test_empty(self) -> None:
        lines = generate_standard_controls_mapping([], self.config).splitlines()
        self.assertEqual(len(lines), 2)


class TestRiskList(unittest.TestCase):
    """Tests for generate_risk_list."""

    def test_empty(self) -> None:
        self.assertIn("No open risk items", generate_risk_list([]))

    def test_rows(self) -> None:
        risks = [
            RiskRecord(
                id="r1",
                name="Laptop theft",
                description="Unencrypted laptops",
                status="open",
                probability="2",
                impact="3",
                owner="IT",
            ),
            RiskRecord(id="r2", name="Phishing"),
        ]
        lines = generate_risk_list(risks).splitlines()
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[2], "| Laptop theft | Unencrypted laptops | 2 | 3 | open | IT |")
        self.assertTrue(lines[3].startswith("| Phishing |"))


class TestPolicyToc(unittest.TestCase):
    """Tests for generate_policy_toc."""

    def test_links_in_catalog_order(self) -> None:
        catalog = TemplateCatalog(
            policies=(
                CatalogEntry("pol-b", "B Policy"),
                CatalogEntry("pol-a", "A Policy"),
            )
        )
        self.assertEqual(
            generate_policy_toc(catalog).splitlines(),
            [
                "- [B Policy](../docs/policies/pol-b.md)",
                "- [A Policy](../docs/policies/pol-a.md)",
            ],
        )

    def test_empty_catalog(self) -> None:
        self.assertEqual(generate_policy_toc(TemplateCatalog()), "")


if __name__ == "__main__":
    unittest.main()
