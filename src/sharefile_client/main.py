"""CLI entry point - ties together configuration, login, and one API call."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

from sharefile_client.config.settings import Settings
from sharefile_client.errors import ConfigurationError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="ShareFile client: run one API operation under a managed session",
    )
    parser.add_argument(
        "--config",
        default=str(pathlib.Path(__file__).resolve().parents[2] / "config" / "settings.yaml"),
        help="Path to settings.yaml (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "method",
        help="Operation to run: authenticate, folder, file, users, group or search",
    )
    parser.add_argument(
        "params",
        nargs="*",
        metavar="key=value",
        help="Operation parameters, e.g. path=/Reports op=list",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        settings = Settings.from_yaml(args.config)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    from sharefile_client.prompt.cli import run_cli

    run_cli(settings, args.method, args.params)


if __name__ == "__main__":
    main()
