from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

AppType = Literal["browser-extension", "desktop-app", "mobile-app", "cli-tool"]


class DeviceCodeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_name: Optional[str] = None
    app_type: Optional[AppType] = None
    app_version: Optional[str] = None

    def query_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.app_name:
            params["app_name"] = self.app_name
        if self.app_type:
            params["app_type"] = self.app_type
        if self.app_version:
            params["app_version"] = self.app_version
        return params


class JobStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)
    TERMINAL = (COMPLETED, FAILED)

    @classmethod
    def is_terminal(cls, status: str | None) -> bool:
        return status in cls.TERMINAL


class DeviceCodeStatus:
    PENDING = "pending"
    AUTHORIZED = "authorized"

    ALL = (PENDING, AUTHORIZED)
