import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from upkeep.load_secrets import functions_base_url, functions_timeout
from upkeep.retry import RetryPolicy, with_rate_limit_retry


@dataclass
class InvocationResult:
    """Response of a remote function call.

    ``degraded`` is True when ``data`` is the caller's fallback rather than
    what the remote function returned; such results are advisory only.
    """

    data: Any
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    degraded: bool = False

    def as_dict(self) -> dict:
        return {"data": self.data, "status": self.status, "headers": self.headers}


class FunctionClient:
    """POSTs JSON payloads to named functions under ``base_url``."""

    def __init__(
        self,
        base_url: str = functions_base_url,
        timeout: float = functions_timeout,
        policy: Optional[RetryPolicy] = None,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.policy = policy
        self.auth = auth
        self.transport = transport

    async def _post(self, function_name: str, payload: dict) -> InvocationResult:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            auth=self.auth,
            transport=self.transport,
        ) as client:
            response = await client.post(f"/{function_name}", json=payload)
            response.raise_for_status()
            data = response.json() if response.content else None
            return InvocationResult(
                data=data, status=response.status_code, headers=dict(response.headers)
            )

    async def invoke(self, function_name: str, payload: Optional[dict] = None) -> InvocationResult:
        payload = payload or {}
        if self.policy is None:
            return await self._post(function_name, payload)
        return await with_rate_limit_retry(
            lambda: self._post(function_name, payload), self.policy
        )


def _log_failure(
    function_name: str, attempt: Optional[int] = None, total: int = 0, error: Optional[BaseException] = None
) -> None:
    # Diagnostics only; a broken handler or error message must not change the outcome.
    try:
        if error is None:
            logging.warning(f"[safe_invoke] {function_name} returning fallback data")
        else:
            logging.warning(f"[safe_invoke] {function_name} failed (attempt {attempt}/{total}): {error}")
    except Exception:
        pass


async def safe_invoke(
    function_name: str,
    payload: Optional[dict] = None,
    *,
    retries: int = 0,
    fallback_data: Any = None,
    log_errors: bool = True,
    retry_delay: float = 0.3,
    invoke: Optional[Callable[[str, dict], Awaitable[InvocationResult]]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> InvocationResult:
    """Invoke a remote function without ever raising.

    Args:
        function_name (str): name of the remote function
        payload (dict, optional): JSON body
        retries (int): extra attempts after the first failure
        fallback_data (Any): returned as ``data`` once every attempt failed
        log_errors (bool): log each failed attempt
        retry_delay (float): fixed delay between attempts, in seconds
        invoke (Callable, optional): defaults to FunctionClient().invoke

    Returns:
        InvocationResult: the remote result, or a degraded result with status 200
    """
    invoke = invoke or FunctionClient().invoke
    payload = payload or {}
    retries = max(0, retries)
    for attempt in range(retries + 1):
        try:
            return await invoke(function_name, payload)
        except Exception as e:
            if log_errors:
                _log_failure(function_name, attempt + 1, retries + 1, e)
            if attempt < retries:
                await sleep(retry_delay)
    if log_errors:
        _log_failure(function_name)
    return InvocationResult(data=fallback_data, status=200, headers={}, degraded=True)
