"""
Command-line interface for pspassess.

Provides commands for rendering policy and procedure documents, listing the
interview questions of a standard, and running a self-assessment.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn

from pspassess import __version__
from pspassess.assessment.questions import (
    UnknownStandardError,
    questions_for_standard,
    registry_for_standard,
    supported_standards,
)
from pspassess.config.organization import (
    OrganizationConfigError,
    load_organization_config,
    validate_organization,
)
from pspassess.config.settings import ConfigurationError, Settings, load_config
from pspassess.render.renderer import RenderError
from pspassess.risks.client import RiskRegistryConfigurationError, RiskRegistryError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MISSING_ARGUMENTS = 2
EXIT_USAGE_ERROR = 126
EXIT_INTERRUPTED = 130

# Global verbosity settings (set during main() based on args)
_quiet_mode = False
_verbose_level = 0


def set_output_mode(quiet: bool = False, verbose: int = 0) -> None:
    """
    Set the output mode for the CLI.

    Args:
        quiet: If True, suppress non-essential output.
        verbose: Verbosity level (0=normal, 1+=verbose).
    """
    global _quiet_mode, _verbose_level
    _quiet_mode = quiet
    _verbose_level = verbose


def output(message: str = "", force: bool = False) -> None:
    """
    Print a message to stdout, respecting quiet mode.

    Args:
        message: The message to print.
        force: If True, print even in quiet mode (for essential output like JSON).
    """
    if force or not _quiet_mode:
        print(message)


def output_verbose(message: str, level: int = 1) -> None:
    """Print a message only if verbosity is high enough."""
    if _verbose_level >= level and not _quiet_mode:
        print(message)


def output_error(message: str) -> None:
    """Print an error message (always shown, even in quiet mode)."""
    print(message, file=sys.stderr)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the pspassess CLI."""
    parser = argparse.ArgumentParser(
        prog="pspassess",
        description="Security policy, standard and procedure self-assessment",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"pspassess {__version__}",
    )
    parser.add_argument(
        "--settings",
        metavar="PATH",
        help="Path to settings file (default: ~/.pspassess/config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # assess
    assess_parser = subparsers.add_parser(
        "assess",
        help="Run a compliance self-assessment",
        description="Interview, detect gaps and write a self-assessment report",
    )
    assess_parser.add_argument(
        "-s",
        "--standard",
        metavar="STANDARD",
        help=f"Compliance standard to assess against ({', '.join(supported_standards())})",
    )
    assess_parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Organization config file (JSON or YAML)",
    )
    assess_parser.add_argument(
        "-o",
        "--output",
        metavar="DIR",
        help="Output directory for the report (default: assessments)",
    )
    assess_parser.add_argument(
        "-t",
        "--templates",
        metavar="DIR",
        help="Template pack directory",
    )
    assess_parser.add_argument(
        "--answers",
        metavar="FILE",
        help="Read interview answers from a JSON/YAML file instead of prompting",
    )
    assess_parser.add_argument(
        "-r",
        "--include-risks",
        action="store_true",
        help="Include items from the risk registry (requires --account and --api-token)",
    )
    assess_parser.add_argument(
        "-a",
        "--account",
        metavar="ID",
        help="Risk registry account id",
    )
    assess_parser.add_argument(
        "-k",
        "--api-token",
        metavar="TOKEN",
        help="Risk registry API token (or PSPASSESS_RISK_REGISTRY_TOKEN)",
    )
    assess_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Summary output format (default: text)",
    )
    assess_parser.set_defaults(func=cmd_assess)

    # build
    build_parser = subparsers.add_parser(
        "build",
        help="Render policy and procedure documents",
    )
    build_parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        required=True,
        help="Organization config file (JSON or YAML)",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        metavar="DIR",
        help="Output directory for documents (default: docs)",
    )
    build_parser.add_argument(
        "-t",
        "--templates",
        metavar="DIR",
        help="Template pack directory",
    )
    build_parser.set_defaults(func=cmd_build)

    # questions
    questions_parser = subparsers.add_parser(
        "questions",
        help="List the interview questions for a standard",
    )
    questions_parser.add_argument(
        "-s",
        "--standard",
        metavar="STANDARD",
        required=True,
        help="Compliance standard",
    )
    questions_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    questions_parser.set_defaults(func=cmd_questions)

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose > 0:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_settings(args: argparse.Namespace) -> Settings:
    settings_path = Path(args.settings) if getattr(args, "settings", None) else None
    settings = load_config(settings_path)
    if not getattr(args, "verbose", 0) and not getattr(args, "quiet", False):
        logging.getLogger().setLevel(settings.log_level)
    return settings


def _create_renderer(args: argparse.Namespace, settings: Settings):
    from pspassess.render import TemplateRenderer, resolve_templates_dir

    templates_dir = resolve_templates_dir(args.templates or settings.templates_dir or None)
    output_verbose(f"Templates: {templates_dir}")
    return TemplateRenderer(templates_dir)


def _create_risk_client(args: argparse.Namespace, settings: Settings):
    from pspassess.risks import RiskRegistryClient

    account = args.account or settings.risk_registry.account
    api_token = args.api_token or os.environ.get("PSPASSESS_RISK_REGISTRY_TOKEN", "")
    return RiskRegistryClient(
        account_id=account,
        api_token=api_token,
        environment=settings.risk_registry.environment,
        base_url=settings.risk_registry.base_url or None,
    )


def cmd_assess(args: argparse.Namespace) -> int:
    """Run a self-assessment and write the report."""
    from pspassess.assessment import report_filename, run_assessment
    from pspassess.prompts import AnswersFileError, load_answers_file, prompt_questions

    if not args.standard or not args.config:
        output_error("Missing required arguments: --standard <standard> --config <file>")
        output_error("Usage: pspassess assess --standard <standard> --config <file> [options]")
        return EXIT_MISSING_ARGUMENTS

    settings = _load_settings(args)
    standard = args.standard.strip().lower()

    # fail on usage errors before asking any question
    questions = questions_for_standard(standard)

    output_verbose(f"config file: {args.config}")
    organization = load_organization_config(Path(args.config))
    validate_organization(organization)

    renderer = _create_renderer(args, settings)
    risk_client = _create_risk_client(args, settings) if args.include_risks else None

    try:
        if args.answers:
            try:
                raw_answers = load_answers_file(Path(args.answers), questions)
            except AnswersFileError as e:
                output_error(f"Answers error: {e}")
                return EXIT_USAGE_ERROR
        else:
            output(f"{standard.upper()} self-assessment for {organization.short_name}")
            output("Answer each question about your organization's current practices.")
            output()
            raw_answers = prompt_questions(questions, registry=registry_for_standard(standard))

        output(f"Generating {standard.upper()} self-assessment report...")
        result = run_assessment(standard, organization, raw_answers, renderer, risk_client)
    finally:
        if risk_client is not None:
            risk_client.close()

    output_dir = Path(args.output or settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / report_filename(standard)
    report_path.write_text(result.report.content, encoding="utf-8")
    logger.info(f"Wrote report to {report_path}")

    if args.format == "json":
        data = result.to_dict()
        data["report_path"] = str(report_path)
        output(json.dumps(data, indent=2), force=True)
        return EXIT_OK

    output(f"Report written to: {report_path}")
    if result.gap_count == 0:
        output("No gaps identified.")
    else:
        output(
            f"Gaps identified: {result.gap_count}. "
            'See "Gaps, Findings and Action Items" section in report.'
        )
    return EXIT_OK


def cmd_build(args: argparse.Namespace) -> int:
    """Render policy and procedure documents."""
    from pspassess.render import TemplateCatalog, render_documents

    settings = _load_settings(args)
    organization = load_organization_config(Path(args.config))
    renderer = _create_renderer(args, settings)
    catalog = TemplateCatalog.load(renderer)

    output_dir = Path(args.output or settings.docs_dir)
    written = render_documents(catalog, renderer, organization.to_context(), output_dir)

    output(f"Rendered {len(written)} documents to {output_dir}")
    for path in written:
        output_verbose(f"  {path}")
    return EXIT_OK


def cmd_questions(args: argparse.Namespace) -> int:
    """List the interview questions for a standard."""
    questions = questions_for_standard(args.standard)
    registry = registry_for_standard(args.standard)

    if args.format == "json":
        data = []
        for question in questions:
            item = question.to_dict()
            definition = registry.get(question.name)
            if definition is not None:
                item["topic"] = definition.display_topic
                item["dependents"] = list(definition.dependents)
            data.append(item)
        output(json.dumps(data, indent=2), force=True)
        return EXIT_OK

    output()
    output(f"{args.standard.upper()} interview questions")
    output("=" * 70)
    for question in questions:
        output(f"\n{question.name} ({question.kind.value})")
        output(f"  {question.message}")
        definition = registry.get(question.name)
        if definition is not None and definition.dependents:
            output(f"  Suppresses when missing: {', '.join(definition.dependents)}")
    return EXIT_OK


def main() -> NoReturn:
    """Main entry point for the pspassess CLI."""
    parser = create_parser()
    args = parser.parse_args()

    # Set up logging and output mode
    setup_logging(args.verbose, args.quiet)
    set_output_mode(args.quiet, args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(EXIT_MISSING_ARGUMENTS)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(EXIT_INTERRUPTED)
    except (ConfigurationError, OrganizationConfigError, UnknownStandardError) as e:
        output_error(f"Configuration error: {e}")
        sys.exit(EXIT_USAGE_ERROR)
    except RiskRegistryConfigurationError as e:
        output_error(f"Usage error: {e}")
        sys.exit(EXIT_USAGE_ERROR)
    except RenderError as e:
        output_error(f"Template error: {e}")
        sys.exit(EXIT_FAILURE)
    except RiskRegistryError as e:
        output_error(f"Risk registry error: {e}")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        if args.verbose > 0:
            raise
        output_error(f"Error: {e}")
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
