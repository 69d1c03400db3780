"""Wire documents exchanged with the management service (camelCase JSON)."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AppType(str, Enum):
    """Supported client applications, in the order they are synced and applied."""

    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Provider(CamelModel):
    """A configured backend profile for one app type.

    Fields this agent does not know about are kept and sent back unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    name: str
    settings_config: dict[str, Any] = Field(default_factory=dict)
    website_url: Optional[str] = None
    category: Optional[str] = None
    created_at: Optional[int] = None
    sort_index: Optional[int] = None
    notes: Optional[str] = None
    meta: Optional[dict[str, Any]] = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class AppProviderSnapshot(CamelModel):
    """Provider set of one app type plus the active provider id."""

    current_id: Optional[str] = None
    providers: dict[str, Provider] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        return {
            "currentId": self.current_id,
            "providers": {key: provider.to_document() for key, provider in self.providers.items()},
        }


class DeviceConfigSnapshot(CamelModel):
    """One optional provider snapshot per app type."""

    claude: Optional[AppProviderSnapshot] = None
    codex: Optional[AppProviderSnapshot] = None
    gemini: Optional[AppProviderSnapshot] = None

    def for_app(self, app_type: AppType) -> Optional[AppProviderSnapshot]:
        return getattr(self, app_type.value)

    def to_document(self) -> dict[str, Any]:
        """Serialize, leaving out app types that have no providers."""
        return {
            app_type.value: snapshot.to_document()
            for app_type in AppType
            if (snapshot := self.for_app(app_type)) is not None
        }


class SyncReply(CamelModel):
    """Body of a successful sync response."""

    ok: bool
    server_time: Optional[str] = None
    admin_config: Optional[DeviceConfigSnapshot] = None
    admin_version: Optional[int] = None
