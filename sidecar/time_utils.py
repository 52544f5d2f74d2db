from __future__ import annotations
# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PS Analyzer sidecar host, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Timezone-aware datetime helpers.

``now_local()`` replaces ``datetime.now()`` so process timestamps are
always timezone-aware in the host's local zone.
"""

from datetime import datetime


def now_local() -> datetime:
    """Return current time as a timezone-aware local datetime."""
    return datetime.now().astimezone()
