"""
Jsonia Runtime — Named APIs

HTTP calls declared in a runtime definition:

    "apis": {"getUser": {"url": "/api/users/{{userId}}", "method": "GET"}}

url and body are templated from the call's params first, then state.
Relative urls resolve against settings.API_BASE_URL.
A call never raises; failures come back as ApiResult(success=False).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from jsonia.config import settings
from jsonia.runtime.expressions import Lookup, as_lookup, interpolate, overlay, resolve_template
from jsonia.runtime.models import ApiDefinition
from jsonia.runtime.types import ApiResult

logger = logging.getLogger(__name__)


class ApiRegistry:
    """Named API definitions and the HTTP client that calls them."""

    def __init__(
        self,
        definitions: Mapping[str, Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        base_url: str | None = None,
    ) -> None:
        self._apis: dict[str, ApiDefinition] = {}
        self._client = http_client
        self.timeout = settings.API_TIMEOUT if timeout is None else timeout
        self.base_url = settings.API_BASE_URL if base_url is None else base_url
        if definitions:
            self.define(definitions)

    def define(self, definitions: Mapping[str, Any]) -> None:
        for name, raw in definitions.items():
            try:
                self._apis[name] = raw if isinstance(raw, ApiDefinition) else ApiDefinition.model_validate(raw)
            except ValidationError as e:
                logger.warning("api: skipping malformed API %s: %s", name, e)

    def __contains__(self, name: object) -> bool:
        return name in self._apis

    @property
    def names(self) -> list[str]:
        return list(self._apis)

    async def call(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        lookup: Lookup | Mapping[str, Any] | None = None,
    ) -> ApiResult:
        api = self._apis.get(name)
        if api is None:
            return ApiResult(success=False, error=f"Unknown API: {name}")

        values = overlay(as_lookup(lookup or {}), dict(params or {}))
        url = interpolate(api.url, values)
        headers = dict(api.headers)
        content = None
        if api.body:
            content = json.dumps(resolve_template(api.body, values), default=str)
            headers["Content-Type"] = "application/json"

        logger.debug("api: %s %s %s", name, api.method, url)
        try:
            if self._client is not None:
                response = await self._client.request(api.method, url, headers=headers, content=content)
            else:
                async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                    response = await client.request(api.method, url, headers=headers, content=content)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("api: %s failed: %s", name, e)
            return ApiResult(success=False, error=str(e))

        return ApiResult(success=True, data=data, status_code=response.status_code)
