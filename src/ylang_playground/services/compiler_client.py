"""HTTP client for the remote Y Language compiler service.

Every call normalizes transport-level failures into the same shape the
service uses for compilation failures, so the orchestration layer only ever
sees a ``CompileResponse`` with an ``errors`` list. No retries happen here.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ylang_playground.core.config import DEFAULT_API_BASE_URL, Settings
from ylang_playground.core.exceptions import CompilerServiceError
from ylang_playground.schemas.compiler import (
    ApiInfo,
    CompileRequest,
    CompileResponse,
    CompileTarget,
    ValidateRequest,
    ValidateResponse,
)


logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error: Failed to connect to Y Language backend"
INVALID_RESPONSE_MESSAGE = "Invalid response from Y Language backend"
HEALTH_CHECK_FAILED_MESSAGE = "Backend health check failed"
DEFAULT_TIMEOUT_SECONDS = 10.0


def _error_message(response: httpx.Response) -> str:
    """Join the body's ``errors`` list, or fall back to the HTTP status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    errors = body.get("errors") if isinstance(body, dict) else None
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors)
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class CompilerClient:
    """Stateless adapter over the compiler's compile/validate/info/health API."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> CompilerClient:
        return cls(
            settings.YLANG_API_BASE_URL,
            timeout=settings.COMPILE_TIMEOUT_SECONDS,
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _send(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(
                    method,
                    path,
                    json=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "Compiler request %s %s failed: %s - %s",
                method,
                path,
                type(exc).__name__,
                str(exc),
            )
            raise CompilerServiceError(NETWORK_ERROR_MESSAGE) from exc

    async def _request_json(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        response = await self._send(method, path, payload)
        if not response.is_success:
            message = _error_message(response)
            logger.info(
                "Compiler %s %s returned HTTP %s", method, path, response.status_code
            )
            raise CompilerServiceError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Compiler %s %s returned a non-JSON body", method, path)
            raise CompilerServiceError(
                INVALID_RESPONSE_MESSAGE, status_code=response.status_code
            ) from exc

    async def compile(
        self,
        code: str,
        target: CompileTarget,
        project_id: str | None = None,
    ) -> CompileResponse:
        """Compile ``code`` for one target; never raises for service failures."""
        request = CompileRequest(
            code=code, target_language=target, project_id=project_id
        )
        try:
            body = await self._request_json("POST", "/compile", request.to_payload())
            return CompileResponse.model_validate(body)
        except CompilerServiceError as exc:
            return CompileResponse.failure(exc.message)
        except ValidationError:
            logger.warning("Compiler returned a malformed compile body")
            return CompileResponse.failure(INVALID_RESPONSE_MESSAGE)

    async def translate_to_typescript(
        self, code: str, project_id: str | None = None
    ) -> CompileResponse:
        return await self.compile(code, CompileTarget.TYPESCRIPT, project_id)

    async def translate_to_rust(
        self, code: str, project_id: str | None = None
    ) -> CompileResponse:
        return await self.compile(code, CompileTarget.RUST, project_id)

    async def validate(self, code: str) -> ValidateResponse:
        """Validate ``code`` without compiling; failures become ``valid=False``."""
        request = ValidateRequest(code=code)
        try:
            body = await self._request_json(
                "POST", "/validate", request.model_dump(mode="json")
            )
            return ValidateResponse.model_validate(body)
        except CompilerServiceError as exc:
            return ValidateResponse.failure(exc.message)
        except ValidationError:
            logger.warning("Compiler returned a malformed validate body")
            return ValidateResponse.failure(INVALID_RESPONSE_MESSAGE)

    async def info(self) -> ApiInfo:
        """Fetch service metadata.

        Raises:
            CompilerServiceError: on transport failure, non-2xx, or a body
                that does not match the info schema.
        """
        body = await self._request_json("GET", "/info")
        try:
            return ApiInfo.model_validate(body)
        except ValidationError as exc:
            raise CompilerServiceError(INVALID_RESPONSE_MESSAGE) from exc

    async def health(self) -> str:
        """Return the service's raw health text.

        Raises:
            CompilerServiceError: when the service is unreachable or not 2xx.
        """
        try:
            response = await self._send("GET", "/health")
        except CompilerServiceError as exc:
            raise CompilerServiceError(HEALTH_CHECK_FAILED_MESSAGE) from exc
        if not response.is_success:
            raise CompilerServiceError(
                HEALTH_CHECK_FAILED_MESSAGE, status_code=response.status_code
            )
        return response.text
