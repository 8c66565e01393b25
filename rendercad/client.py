"""Synchronous and asynchronous clients for the RenderCAD AI API.

Each public method issues exactly one HTTP request and returns the parsed
JSON body, or raises a ``RenderCADError`` subclass. Long-running renders are
tracked by calling ``check_status`` again on the caller's own schedule::

    client = RenderCADClient("token")
    job = client.render_image("./room.jpg")
    status = client.check_status(job["job_id"])
    while not JobStatus.is_terminal(status["status"]):
        time.sleep(5)
        status = client.check_status(job["job_id"])
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Mapping, Union

import httpx
from pydantic import ValidationError

from .config import ClientSettings
from .errors import BadRequestError, UnauthorizedError
from .gateway import AUTH_PATH, RENDER_PATH, ApiRequest, interpret_response, prepare_request, transport_error
from .image_io import ImageInput, encode_image
from .schemas import DeviceCodeOptions

logger = logging.getLogger("rendercad.client")

TOKEN_REQUIRED_MESSAGE = "API token is required. Set it in the constructor or use set_api_token()."

DeviceCodeOptionsInput = Union[DeviceCodeOptions, Mapping[str, Any], None]

TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def build_device_code_options(
    options: DeviceCodeOptionsInput = None,
    *,
    app_name: str | None = None,
    app_type: str | None = None,
    app_version: str | None = None,
) -> DeviceCodeOptions:
    if isinstance(options, DeviceCodeOptions):
        raw = options.model_dump()
    else:
        raw = dict(options or {})
    for key, value in (("app_name", app_name), ("app_type", app_type), ("app_version", app_version)):
        if value is not None:
            raw[key] = value
    # Empty strings mean "not supplied".
    cleaned = {key: value for key, value in raw.items() if value not in (None, "")}
    try:
        return DeviceCodeOptions.model_validate(cleaned)
    except ValidationError as exc:
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        raise BadRequestError(f"Invalid device code options: {details}") from exc


class _ClientBase:
    def __init__(
        self,
        api_token: str | None = None,
        *,
        base_url: str | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        settings = settings or ClientSettings()
        if base_url is not None:
            settings = replace(settings, base_url=base_url)
        self._settings = settings
        self._api_token = api_token if api_token is not None else settings.api_token

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    @property
    def api_token(self) -> str | None:
        return self._api_token

    @api_token.setter
    def api_token(self, token: str | None) -> None:
        self._api_token = token or None

    def set_api_token(self, token: str | None) -> None:
        self.api_token = token

    def _require_token(self) -> None:
        if not self._api_token:
            raise UnauthorizedError(TOKEN_REQUIRED_MESSAGE)

    def _prepare(self, method: str, path: str, params: Mapping[str, Any], body: Any = None) -> ApiRequest:
        return prepare_request(
            method,
            self._settings.base_url,
            path,
            params,
            token=self._api_token,
            user_agent=self._settings.user_agent,
            body=body,
        )

    def _render_request(self, image_data: str) -> ApiRequest:
        return self._prepare("POST", RENDER_PATH, {"action": "render"}, body={"image": image_data})

    def _status_request(self, job_id: str) -> ApiRequest:
        self._require_token()
        if not job_id:
            raise BadRequestError("job_id is required")
        return self._prepare("GET", RENDER_PATH, {"action": "status", "job_id": job_id})

    def _account_request(self) -> ApiRequest:
        self._require_token()
        return self._prepare("GET", AUTH_PATH, {"action": "check"})

    def _device_code_request(self, options: DeviceCodeOptions) -> ApiRequest:
        params = {"action": "request_device_code", **options.query_params()}
        return self._prepare("POST", AUTH_PATH, params)

    def _poll_request(self, code: str) -> ApiRequest:
        if not code:
            raise BadRequestError("Device code is required")
        return self._prepare("GET", AUTH_PATH, {"action": "poll_device_code", "code": code})

    def _http_client_kwargs(self) -> dict[str, Any]:
        if self._settings.timeout_seconds is None:
            return {}
        return {"timeout": self._settings.timeout_seconds}


class RenderCADClient(_ClientBase):
    def __init__(
        self,
        api_token: str | None = None,
        *,
        base_url: str | None = None,
        settings: ClientSettings | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(api_token, base_url=base_url, settings=settings)
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(**self._http_client_kwargs())

    @classmethod
    def from_env(cls, *, http_client: httpx.Client | None = None) -> "RenderCADClient":
        return cls(settings=ClientSettings.from_env(), http_client=http_client)

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> "RenderCADClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _send(self, request: ApiRequest) -> Any:
        logger.debug("%s %s", request.method, request.url)
        try:
            response = self._http.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.content,
            )
        except TRANSPORT_ERRORS as exc:
            logger.warning("Transport failure on %s %s: %s", request.method, request.url, exc)
            raise transport_error(exc) from exc
        return interpret_response(response.status_code, response.content)

    def render_image(self, image: ImageInput) -> Any:
        self._require_token()
        image_data = encode_image(image)
        result = self._send(self._render_request(image_data))
        if isinstance(result, dict) and result.get("job_id"):
            logger.info("Render job submitted: %s", result["job_id"])
        return result

    def check_status(self, job_id: str) -> Any:
        return self._send(self._status_request(job_id))

    def check_account(self) -> Any:
        return self._send(self._account_request())

    def request_device_code(
        self,
        options: DeviceCodeOptionsInput = None,
        *,
        app_name: str | None = None,
        app_type: str | None = None,
        app_version: str | None = None,
    ) -> Any:
        resolved = build_device_code_options(
            options,
            app_name=app_name,
            app_type=app_type,
            app_version=app_version,
        )
        return self._send(self._device_code_request(resolved))

    def poll_device_code(self, code: str) -> Any:
        return self._send(self._poll_request(code))


class AsyncRenderCADClient(_ClientBase):
    def __init__(
        self,
        api_token: str | None = None,
        *,
        base_url: str | None = None,
        settings: ClientSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_token, base_url=base_url, settings=settings)
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(**self._http_client_kwargs())

    @classmethod
    def from_env(cls, *, http_client: httpx.AsyncClient | None = None) -> "AsyncRenderCADClient":
        return cls(settings=ClientSettings.from_env(), http_client=http_client)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "AsyncRenderCADClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _send(self, request: ApiRequest) -> Any:
        logger.debug("%s %s", request.method, request.url)
        try:
            response = await self._http.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.content,
            )
        except TRANSPORT_ERRORS as exc:
            logger.warning("Transport failure on %s %s: %s", request.method, request.url, exc)
            raise transport_error(exc) from exc
        return interpret_response(response.status_code, response.content)

    async def render_image(self, image: ImageInput) -> Any:
        self._require_token()
        image_data = await asyncio.to_thread(encode_image, image)
        result = await self._send(self._render_request(image_data))
        if isinstance(result, dict) and result.get("job_id"):
            logger.info("Render job submitted: %s", result["job_id"])
        return result

    async def check_status(self, job_id: str) -> Any:
        return await self._send(self._status_request(job_id))

    async def check_account(self) -> Any:
        return await self._send(self._account_request())

    async def request_device_code(
        self,
        options: DeviceCodeOptionsInput = None,
        *,
        app_name: str | None = None,
        app_type: str | None = None,
        app_version: str | None = None,
    ) -> Any:
        resolved = build_device_code_options(
            options,
            app_name=app_name,
            app_type=app_type,
            app_version=app_version,
        )
        return await self._send(self._device_code_request(resolved))

    async def poll_device_code(self, code: str) -> Any:
        return await self._send(self._poll_request(code))
