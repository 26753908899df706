"""
OpenMRS REST API client shared by the OpenMRS adapters.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ...core.config import OpenMRSSettings
from ...core.exceptions import OpenMRSError

logger = logging.getLogger("visitflow.openmrs")

REST_PATH = "/ws/rest/v1"


def _server_message(text: str) -> Optional[str]:
    """Error message from an OpenMRS error body, if it has one."""
    try:
        body = json.loads(text)
    except (TypeError, ValueError):
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message")
    return None


class OpenMRSClient:
    """Thin aiohttp wrapper with basic auth and a per-request timeout."""

    def __init__(self, settings: OpenMRSSettings) -> None:
        self._settings = settings

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def rest_url(self, path: str) -> str:
        return f"{self._settings.base_url}{REST_PATH}/{path.lstrip('/')}"

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        _, body = await self.request("GET", self.rest_url(path), params=params)
        return body

    async def post(self, path: str, payload: Dict[str, Any]) -> Tuple[int, Any]:
        return await self.request("POST", self.rest_url(path), payload=payload)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Any]:
        """Send one request; raises OpenMRSError on transport or HTTP errors."""
        timeout = aiohttp.ClientTimeout(total=self._settings.timeout_seconds)
        auth = aiohttp.BasicAuth(self._settings.username, self._settings.password)
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            async with aiohttp.ClientSession(timeout=timeout, auth=auth) as session:
                async with session.request(
                    method,
                    url,
                    params=query,
                    json=payload,
                    headers={"Accept": "application/json"},
                ) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        logger.error(
                            f"OpenMRS request failed: {method} {url} -> {response.status} {error_text[:200]}"
                        )
                        raise OpenMRSError(
                            _server_message(error_text) or f"HTTP {response.status}",
                            status=response.status,
                        )
                    text = await response.text()
                    if not text:
                        return response.status, {}
                    try:
                        return response.status, json.loads(text)
                    except ValueError as exc:
                        logger.error(f"OpenMRS returned a non-JSON body: {method} {url} -> {text[:200]}")
                        raise OpenMRSError("invalid JSON response", status=response.status) from exc
        except asyncio.TimeoutError as exc:
            logger.error(f"OpenMRS request timed out: {method} {url}")
            raise OpenMRSError("request timed out") from exc
        except aiohttp.ClientError as exc:
            logger.error(f"OpenMRS request error: {method} {url}: {exc}")
            raise OpenMRSError(str(exc) or "network unreachable") from exc
