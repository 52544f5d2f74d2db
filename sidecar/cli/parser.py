# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psa-sidecar",
        description="PS Analyzer - bio-engine sidecar host",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Override runtime data directory (default: ~/.psanalyzer or PSA_DATA_DIR)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: PSA_LOG_LEVEL or config system.log_level)",
    )
    sub = parser.add_subparsers(dest="command")

    # ── Run ───────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Launch the engine and supervise it until exit")
    p_run.add_argument(
        "--resource-dir", default=None,
        help="Packaged resource directory (overrides host.resource_dir)",
    )
    p_run.add_argument(
        "--engine", default=None, metavar="PATH",
        help="Engine executable (overrides engine.path)",
    )
    p_run.add_argument(
        "--port", type=int, default=None,
        help="Engine port used in diagnostics and the health probe",
    )
    p_run.add_argument(
        "--no-health-probe", action="store_true",
        help="Do not poll the engine HTTP endpoint after startup",
    )
    p_run.set_defaults(func=_lazy_run)

    # ── Resolve ───────────────────────────────────────────
    p_resolve = sub.add_parser("resolve", help="Show where Tracy would be loaded from")
    p_resolve.add_argument(
        "--platform", default=None,
        help="Platform to resolve for (linux, windows, ...; default: current)",
    )
    p_resolve.add_argument(
        "--resource-dir", default=None,
        help="Packaged resource directory (overrides host.resource_dir)",
    )
    p_resolve.set_defaults(func=_lazy_resolve)

    # ── Config ────────────────────────────────────────────
    p_config = sub.add_parser("config", help="Print the effective configuration")
    p_config.set_defaults(func=_lazy_config)

    return parser


def cli_main(argv: list[str] | None = None) -> int:
    from dotenv import load_dotenv

    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    # Apply --data-dir override before any command
    if args.data_dir:
        os.environ["PSA_DATA_DIR"] = args.data_dir

    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return args.func(args) or 0


def _lazy_run(args: argparse.Namespace) -> int:
    from sidecar.cli.commands.run import cmd_run

    return cmd_run(args)


def _lazy_resolve(args: argparse.Namespace) -> int:
    from sidecar.cli.commands.resolve import cmd_resolve

    return cmd_resolve(args)


def _lazy_config(args: argparse.Namespace) -> int:
    from sidecar.cli.commands.config_cmd import cmd_config

    return cmd_config(args)
