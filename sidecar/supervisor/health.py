"""
Readiness probe for the engine's HTTP API.
"""

# PS Analyzer - Sidecar Host
# Copyright (C) 2026 PS Analyzer Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)


class EngineHealthProbe:
    """Poll the engine root URL until it answers.

    Any HTTP response counts as "up": the engine only has to be accepting
    connections, not serving a particular route.
    """

    def __init__(
        self,
        url: str,
        retries: int = 20,
        interval: float = 1.0,
        timeout: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.retries = retries
        self.interval = interval
        self.timeout = timeout
        self._transport = transport
        self.ready = False

    async def check(self, client: httpx.AsyncClient) -> bool:
        """Single probe. Returns True if the engine answered."""
        try:
            await client.get(self.url)
        except httpx.HTTPError as e:
            logger.debug("Engine not reachable at %s: %s", self.url, e)
            return False
        return True

    async def wait_until_ready(self) -> bool:
        """
        Probe up to ``retries`` times, ``interval`` seconds apart.

        Returns:
            True if the engine answered within the budget, False otherwise
        """
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport,
        ) as client:
            for attempt in range(1, self.retries + 1):
                if await self.check(client):
                    logger.info("Engine ready at %s (attempt %d)", self.url, attempt)
                    self.ready = True
                    return True
                if attempt < self.retries:
                    await asyncio.sleep(self.interval)

        logger.warning(
            "Engine not reachable at %s after %d attempts", self.url, self.retries,
        )
        self.ready = False
        return False
