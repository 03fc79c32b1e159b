"""
Command-line interface for validating data files against rule sets.

Usage:
    python -m nestcheck.cli.validate_cli check --rules <rules_file> --input <data_file> [options]
    python -m nestcheck.cli.validate_cli inspect --rules <rules_file> [--name <rule_set>]
    python -m nestcheck.cli.validate_cli rules
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from nestcheck.config import NestcheckSettings, get_settings
from nestcheck.core.rules import RuleSetLoader, Validator
from nestcheck.core.types import EnumDomain
from nestcheck.observability.logger import get_logger, log_operation

logger = get_logger(__name__)

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def load_subject(path: str) -> Any:
    """
    Load the data to validate from a JSON or YAML file; '-' reads JSON from stdin.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file can't be parsed
    """
    if path == "-":
        try:
            return json.load(sys.stdin)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON on stdin: {e}") from e

    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with open(input_path) as f:
        if input_path.suffix.lower() in (".yaml", ".yml"):
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e


def create_validator(args) -> Validator:
    """Validator honouring the --enum-domain override of the environment settings."""
    settings = get_settings()
    if args.enum_domain:
        settings = NestcheckSettings(**{**settings.model_dump(), "enum_domain": args.enum_domain})
    return Validator(settings=settings)


def check_command(args) -> int:
    """
    Validate a data file against a rule set.

    Returns:
        0 if the data passes, 1 if it fails, 2 on configuration error
    """
    validator = create_validator(args)
    try:
        with log_operation("Loading rule set", logger=logger, rules=args.rules):
            source = RuleSetLoader(args.rules).load_source(args.name)
            rule_set = validator.make(source)
        subject = load_subject(args.input)
    except (FileNotFoundError, ValueError) as e:
        # RuleSetError is a ValueError.
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    options = Validator.RECORD
    if args.continue_:
        options |= Validator.CONTINUE
    passed = validator.challenge(subject, rule_set, options, name=args.name or "default")

    if passed:
        print("PASSED")
        return EXIT_PASSED

    print("FAILED")
    print(validator.get_last_failure())
    return EXIT_FAILED


def inspect_command(args) -> int:
    """Print the normalized form of a rule set as JSON."""
    validator = create_validator(args)
    try:
        source = RuleSetLoader(args.rules).load_source(args.name)
        rule_set = validator.make(source)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(json.dumps(rule_set.export_rules(), indent=2, default=str))
    return EXIT_PASSED


def rules_command(args) -> int:
    """List the rules of the rule provider."""
    provider = create_validator(args).rule_provider

    print(f"Rule provider: {provider!r}")
    print()
    print("Type-checking rules:")
    for name in provider.get_rule_names(type_rules_only=True):
        print(f"  {_describe_rule(provider.get_rule(name))}")
    print()
    print("Pattern rules:")
    for name in provider.get_rule_names(pattern_rules_only=True):
        print(f"  {_describe_rule(provider.get_rule(name))}")
    return EXIT_PASSED


def _describe_rule(rule) -> str:
    if rule.params_allowed == rule.params_required:
        params = f"{rule.params_required} argument(s)" if rule.params_required else "flag"
    else:
        params = f"{rule.params_required}-{rule.params_allowed} argument(s)"
    return f"{rule.name:<16} {rule.type.name or int(rule.type):<20} {params}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nestcheck",
        description="Validate nested data against declarative rule sets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate a JSON document
  nestcheck check --rules config/person.yaml --input data/person.json

  # Choose a named rule set, and record every failure
  nestcheck check --rules config/rule_sets.yaml --name person --input data/person.json --continue

  # Show the normalized rule set
  nestcheck inspect --rules config/rule_sets.yaml --name person
        """
    )
    parser.add_argument(
        "--enum-domain",
        choices=[domain.value for domain in EnumDomain],
        help="Scalar domain of the enum rule (default: NESTCHECK_ENUM_DOMAIN or scalar_nullable)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Validate a data file")
    check_parser.add_argument("--rules", required=True, help="Path to rule set YAML or JSON file")
    check_parser.add_argument("--name", help="Rule set name, if the file holds several")
    check_parser.add_argument("--input", required=True, help="Path to JSON or YAML data file, '-' for stdin")
    check_parser.add_argument(
        "--continue",
        dest="continue_",
        action="store_true",
        help="Record every failure instead of stopping at the first"
    )

    inspect_parser = subparsers.add_parser("inspect", help="Print the normalized rule set")
    inspect_parser.add_argument("--rules", required=True, help="Path to rule set YAML or JSON file")
    inspect_parser.add_argument("--name", help="Rule set name, if the file holds several")

    subparsers.add_parser("rules", help="List available rules")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    commands = {
        "check": check_command,
        "inspect": inspect_command,
        "rules": rules_command,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
