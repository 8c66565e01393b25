from .client import AsyncRenderCADClient, RenderCADClient
from .config import DEFAULT_BASE_URL, ClientSettings, __version__
from .errors import (
    BadRequestError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    RenderCADError,
    ServerError,
    UnauthorizedError,
)
from .image_io import encode_image
from .logging_config import configure_logging
from .schemas import DeviceCodeOptions, DeviceCodeStatus, JobStatus

__all__ = [
    "AsyncRenderCADClient",
    "BadRequestError",
    "ClientSettings",
    "ConfigurationError",
    "DEFAULT_BASE_URL",
    "DeviceCodeOptions",
    "DeviceCodeStatus",
    "JobStatus",
    "NotFoundError",
    "RateLimitError",
    "RenderCADClient",
    "RenderCADError",
    "ServerError",
    "UnauthorizedError",
    "__version__",
    "configure_logging",
    "encode_image",
]
