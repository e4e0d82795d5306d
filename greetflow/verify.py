"""Check that run tracing is configured and the tracing stack is installed."""

from __future__ import annotations

import argparse
import importlib.util
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, TextIO

from dotenv import dotenv_values

from greetflow.tracing.config import DEFAULT_ENDPOINT, ENV_API_KEY, ENV_ENDPOINT, ENV_PROJECT, ENV_TRACING

REQUIRED_VARS = {
    ENV_TRACING: "Should be 'true'",
    ENV_API_KEY: "Your LangSmith API key (starts with lsv2_pt_ or ls__)",
    ENV_PROJECT: "Your project name (e.g., 'greetflow')",
}

OPTIONAL_VARS = {
    ENV_ENDPOINT: f"LangSmith API endpoint (default: {DEFAULT_ENDPOINT})",
}

TRACING_PACKAGES = ("httpx", "orjson", "dotenv")
RUNTIME_PACKAGES = ("jsonschema", "prometheus_client", "yaml")

ENV_TEMPLATE = f"""# LangSmith Configuration
# Get your API key from: https://smith.langchain.com/settings

# Enable tracing (must be 'true')
{ENV_TRACING}=true

# Your LangSmith API key (replace with your actual key)
{ENV_API_KEY}=your_api_key_here

# Project name (you can change this)
{ENV_PROJECT}=greetflow

# API endpoint (usually don't need to change this)
{ENV_ENDPOINT}={DEFAULT_ENDPOINT}
"""

_RULE = "=" * 70
_THIN_RULE = "-" * 70
_API_KEY_PREFIXES = ("lsv2_pt_", "ls__")


@dataclass
class CheckResult:
    all_good: bool = True
    issues: List[str] = field(default_factory=list)

    def fail(self, issue: str) -> None:
        self.all_good = False
        self.issues.append(issue)


def _mask(name: str, value: str) -> str:
    if "API_KEY" in name and len(value) > 15:
        return value[:15] + "..."
    return value


def check_env_vars(environ: Mapping[str, Optional[str]], stream: Optional[TextIO] = None) -> CheckResult:
    stream = stream or sys.stdout
    result = CheckResult()
    print(_RULE, file=stream)
    print("LangSmith Configuration Verification", file=stream)
    print(_RULE, file=stream)
    print(file=stream)
    print("Required Environment Variables:", file=stream)
    print(_THIN_RULE, file=stream)

    for name, description in REQUIRED_VARS.items():
        value = environ.get(name)
        if not value:
            print(f"✗ {name}", file=stream)
            print("  Status: NOT SET", file=stream)
            print(f"  Description: {description}", file=stream)
            result.fail(f"{name} is not set")
            print(file=stream)
            continue

        print(f"✓ {name}", file=stream)
        print(f"  Value: {_mask(name, value)}", file=stream)
        print(f"  Description: {description}", file=stream)
        if name == ENV_TRACING and value.lower() != "true":
            print(f"  WARNING: Should be 'true', got '{value}'", file=stream)
            result.fail(f"{name} should be 'true'")
        if name == ENV_API_KEY:
            if not value.startswith(_API_KEY_PREFIXES):
                print("  WARNING: API key format looks incorrect", file=stream)
                print("     Expected to start with 'lsv2_pt_' or 'ls__'", file=stream)
                result.fail("API key format may be incorrect")
            if len(value) < 20:
                print("  WARNING: API key seems too short", file=stream)
                result.fail("API key seems too short")
        print(file=stream)

    print("Optional Environment Variables:", file=stream)
    print(_THIN_RULE, file=stream)
    for name, description in OPTIONAL_VARS.items():
        value = environ.get(name)
        if value:
            print(f"✓ {name}: {value}", file=stream)
        else:
            print(f"  {name}: Using default", file=stream)
            print(f"  Description: {description}", file=stream)
        print(file=stream)
    return result


def check_packages(stream: Optional[TextIO] = None) -> bool:
    stream = stream or sys.stdout
    print("Testing Tracing Packages:", file=stream)
    print(_THIN_RULE, file=stream)
    ok = True
    for module in TRACING_PACKAGES + RUNTIME_PACKAGES:
        if importlib.util.find_spec(module) is None:
            print(f"✗ {module} not found", file=stream)
            ok = False
        else:
            print(f"✓ {module} installed", file=stream)
    if not ok:
        print("  Install with: pip install greetflow", file=stream)
    return ok


def create_env_template(path: str | os.PathLike[str] = ".env.template", stream: Optional[TextIO] = None) -> Path:
    stream = stream or sys.stdout
    target = Path(path)
    target.write_text(ENV_TEMPLATE, encoding="utf-8")

    print(file=stream)
    print(_RULE, file=stream)
    print("Creating .env Template", file=stream)
    print(_RULE, file=stream)
    print(f"✓ Created template at: {target}", file=stream)
    print(file=stream)
    print("Next steps:", file=stream)
    print(f"1. Copy the template: cp {target} .env", file=stream)
    print("2. Edit .env and replace 'your_api_key_here' with your actual API key", file=stream)
    print("3. Get your API key from: https://smith.langchain.com/settings", file=stream)
    return target


def print_next_steps(result: CheckResult, stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    print(file=stream)
    print(_RULE, file=stream)
    print("Summary", file=stream)
    print(_RULE, file=stream)

    if result.all_good:
        print("✓ All checks passed! LangSmith should be working.", file=stream)
        print(file=stream)
        print("To verify tracing:", file=stream)
        print("1. Run the agent: greetflow demo", file=stream)
        print("2. Go to: https://smith.langchain.com", file=stream)
        print("3. Check the 'Runs' tab in your project", file=stream)
        return

    print("✗ Issues found:", file=stream)
    for index, issue in enumerate(result.issues, start=1):
        print(f"   {index}. {issue}", file=stream)
    print(file=stream)
    print("How to fix:", file=stream)
    print(file=stream)
    print("Option 1: Create .env file", file=stream)
    print("  1. Run: greetflow verify --create-template", file=stream)
    print("  2. Copy .env.template to .env", file=stream)
    print("  3. Edit .env with your API key", file=stream)
    print(file=stream)
    print("Option 2: Export environment variables", file=stream)
    print(f"  export {ENV_TRACING}=true", file=stream)
    print(f"  export {ENV_API_KEY}=your_key_here", file=stream)
    print(f"  export {ENV_PROJECT}=greetflow", file=stream)


def verify(
    environ: Mapping[str, Optional[str]] | None = None,
    *,
    env_file: str | os.PathLike[str] | None = ".env",
    stream: Optional[TextIO] = None,
) -> int:
    """Run every check; exit code is 1 when a tracing variable is missing or malformed."""

    stream = stream or sys.stdout

    merged: dict = {}
    if env_file is not None and Path(env_file).is_file():
        merged.update(dotenv_values(env_file))
    merged.update(os.environ if environ is None else environ)

    result = check_env_vars(merged, stream)
    # package checks are informational; the exit code reflects the variables only
    check_packages(stream)
    print_next_steps(result, stream)
    return 0 if result.all_good else 1


def register_verify_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("verify", help="Check tracing variables (exit 1 on problems) and list installed packages")
    # --env-file comes from the top-level greetflow parser
    _add_arguments(parser, env_file=False)
    parser.set_defaults(func=_cmd_verify)


def _add_arguments(parser: argparse.ArgumentParser, *, env_file: bool = True) -> None:
    parser.add_argument("--create-template", action="store_true", help="Write .env.template and exit")
    parser.add_argument("--template-path", default=".env.template", help="Where --create-template writes")
    if env_file:
        parser.add_argument("--env-file", default=".env", help="dotenv file read before checking (default: .env)")


def _cmd_verify(args: argparse.Namespace) -> int:
    if args.create_template:
        create_env_template(args.template_path)
        return 0
    return verify(env_file=args.env_file)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify greetflow tracing configuration")
    _add_arguments(parser)
    return _cmd_verify(parser.parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
