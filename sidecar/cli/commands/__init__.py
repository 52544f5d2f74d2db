# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0
