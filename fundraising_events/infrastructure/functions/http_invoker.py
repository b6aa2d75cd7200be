"""Remote function invocation over HTTP. Errors come back in the result instead of being raised."""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from fundraising_events.application.ports import InvocationResult

logger = logging.getLogger(__name__)


class HttpFunctionInvoker:
    """POST {base_url}/{function_name} with a JSON body and bearer API key."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> InvocationResult:
        try:
            response = await self._client.post(
                f"/{function_name}",
                content=json.dumps(body, default=str),
            )
        except httpx.HTTPError as e:
            logger.warning("function_invoke_failed", extra={"function": function_name, "error": str(e)})
            return InvocationResult(error=str(e) or e.__class__.__name__)
        if response.is_error:
            logger.warning(
                "function_invoke_error_status",
                extra={"function": function_name, "status_code": response.status_code},
            )
            return InvocationResult(error=f"HTTP {response.status_code}: {response.text[:200]}")
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text
        return InvocationResult(data=data)

    async def aclose(self) -> None:
        await self._client.aclose()
