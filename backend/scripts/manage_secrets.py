#!/usr/bin/env python
"""Move scheduler secrets between a .env file and the OS keychain.

Only the keys in ``CREDENTIAL_KEYS`` (cron secret, alert webhook URL,
metrics gateway API key) are touched.  Values are never printed.

Usage:
    python -m scripts.manage_secrets status
    python -m scripts.manage_secrets import-env
    python -m scripts.manage_secrets import-env --env-file ../.env --strip
"""

import argparse
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from services.credential_manager import CREDENTIAL_KEYS, get_credential, set_credential

DEFAULT_ENV_FILE = Path(__file__).parent.parent / ".env"


@dataclass
class ImportReport:
    stored: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def in_keychain(self) -> list[str]:
        """Keys whose .env value now matches the keychain."""
        return self.stored + self.unchanged


def import_env(env_path: Path) -> ImportReport:
    """Store every non-empty secret from ``env_path`` in the keychain.

    Keys already holding the same value are left alone.
    """
    values = dotenv_values(env_path)
    report = ImportReport()
    for key in sorted(CREDENTIAL_KEYS):
        value = values.get(key)
        if not value:
            report.missing.append(key)
        elif get_credential(key) == value:
            report.unchanged.append(key)
        elif set_credential(key, value):
            report.stored.append(key)
        else:
            report.failed.append(key)
    return report


def strip_env_file(env_path: Path, keys: list[str]) -> int:
    """Drop ``KEY=...`` lines for ``keys`` from ``env_path``.

    Comments, blank lines and every other setting are kept.

    Returns:
        Number of lines removed
    """
    if not keys:
        return 0
    pattern = re.compile(r"^\s*(?:export\s+)?(" + "|".join(map(re.escape, keys)) + r")\s*=")
    lines = env_path.read_text().splitlines(keepends=True)
    kept = [line for line in lines if not pattern.match(line)]
    env_path.write_text("".join(kept))
    return len(lines) - len(kept)


def run_status(args: argparse.Namespace) -> int:
    for key in sorted(CREDENTIAL_KEYS):
        state = "set" if get_credential(key) else "not set"
        print(f"  {key:<30} {state}")
    return 0


def run_import_env(args: argparse.Namespace) -> int:
    env_path: Path = args.env_file
    if not env_path.exists():
        print(f"Error: no .env file at {env_path}")
        return 1

    report = import_env(env_path)
    for label, keys in (
        ("Stored", report.stored),
        ("Unchanged", report.unchanged),
        ("Not in .env", report.missing),
        ("FAILED", report.failed),
    ):
        for key in keys:
            print(f"  {label:<12} {key}")

    if args.strip:
        removed = strip_env_file(env_path, report.in_keychain)
        print(f"Removed {removed} line(s) from {env_path}")
    return 1 if report.failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage scheduler secrets in the OS keychain.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status = subparsers.add_parser("status", help="Show which secrets the keychain holds")
    status.set_defaults(handler=run_status)

    imp = subparsers.add_parser("import-env", help="Copy secrets from a .env file")
    imp.add_argument("--env-file", type=Path, default=DEFAULT_ENV_FILE)
    imp.add_argument(
        "--strip", action="store_true", help="Remove imported secrets from the .env file"
    )
    imp.set_defaults(handler=run_import_env)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
