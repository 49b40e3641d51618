# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Application registry proxy.

Forwards registry lookups to the instance's registries, then to the
built-in fallback registry, and streams back the first successful
answer verbatim.
"""
import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx

from config import RegistryConfig
from jsonapi import errors as jsonapi

logger = logging.getLogger(__name__)


class UpstreamResponse:
    """An open upstream response whose body is streamed to the caller"""

    def __init__(self, response: httpx.Response, registry: str):
        self.response = response
        self.registry = registry

    @property
    def media_type(self) -> str:
        return self.response.headers.get("content-type", "application/json")

    def iter_bytes(self) -> AsyncIterator[bytes]:
        return self.response.aiter_bytes()

    async def aclose(self) -> None:
        await self.response.aclose()


class RegistryProxy:
    """Read-through proxy with ordered failover across registries"""

    def __init__(self, config: RegistryConfig,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client = httpx.AsyncClient(
            timeout=config.timeout,
            transport=transport,
            follow_redirects=True,
        )

    def registries_for(self, registries: List[str]) -> List[str]:
        """Instance registries first, the fallback registry last"""
        ordered = [r for r in registries if r]
        if self.config.fallback_url and self.config.fallback_url not in ordered:
            ordered.append(self.config.fallback_url)
        return ordered

    @staticmethod
    def _upstream_url(registry: str, path: str) -> str:
        return registry.rstrip("/") + "/" + path.lstrip("/")

    async def open(self, path: str, params: Dict[str, str],
                   registries: List[str]) -> UpstreamResponse:
        """Return the first registry answering 200 for path.

        Raises a 404 error when every registry misses, and a 502 error when
        at least one registry failed for another reason.
        """
        failures = []
        for registry in self.registries_for(registries):
            url = self._upstream_url(registry, path)
            request = self.client.build_request(
                "GET", url, params=params, headers={"Accept": "application/json"}
            )
            try:
                response = await self.client.send(request, stream=True)
            except httpx.HTTPError as e:
                logger.warning("Registry %s unreachable: %s", registry, e)
                failures.append(f"{registry}: {e}")
                continue
            if response.status_code == 200:
                return UpstreamResponse(response, registry)
            await response.aclose()
            if response.status_code != 404:
                logger.warning("Registry %s answered %s for %s", registry, response.status_code, path)
                failures.append(f"{registry}: HTTP {response.status_code}")
        if failures:
            raise jsonapi.new_error(502, "No registry could answer:", "; ".join(failures))
        raise jsonapi.not_found("Application not found in any registry")

    async def close(self) -> None:
        await self.client.aclose()
