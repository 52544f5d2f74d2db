# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import functools

from sidecar.cli.commands._common import load_cli_config, resolve_log_level
from sidecar.logging_config import setup_logging
from sidecar.paths import PathResolver, get_resource_dir
from sidecar.supervisor.manager import ProcessSupervisor


def cmd_resolve(args: argparse.Namespace) -> int:
    """Print the Tracy resolution and the engine command line it produces."""
    config = load_cli_config(args)
    setup_logging(level=resolve_log_level(args, config))
    if config is None:
        return 1

    resolver = PathResolver(
        resource_dir_provider=functools.partial(get_resource_dir, config.host.resource_dir),
    )
    aux = resolver.resolve(args.platform)
    invocation = ProcessSupervisor(config.engine, config.host.resource_dir).build_invocation(aux)

    print(f"platform triple: {aux.platform_triple}")
    print(f"tracy path:      {aux.resolved_path if aux.found else '(not found)'}")
    print(f"command:         {' '.join([invocation.program, *invocation.args])}")
    for key, value in invocation.env.items():
        print(f"env:             {key}={value}")
    return 0
