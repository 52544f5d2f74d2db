# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
"""Sidecar host that launches and supervises the PS Analyzer bio-engine."""

__version__ = "0.1.0"
