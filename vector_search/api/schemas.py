from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.domain.entities.search import (
    DEFAULT_SCORE_THRESHOLD, DEFAULT_SEARCH_LIMIT, SearchRequest
)
from ..core.domain.entities.settings_bundle import (
    ProviderSettings, SettingsBundle, VectorStoreSettings
)


# Wire shapes of the settings bundle, as sent by the host application

class ProviderSettingsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    endpoint: Optional[str] = None
    api_key: Optional[str] = Field(None, alias="apiKey")
    did_fill_in_provider_settings: bool = Field(False, alias="_didFillInProviderSettings")

    def to_domain(self) -> ProviderSettings:
        return ProviderSettings(
            endpoint=self.endpoint,
            api_key=self.api_key,
            is_configured=self.did_fill_in_provider_settings,
        )


class GlobalSettingsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    vector_store_url: Optional[str] = Field(None, alias="vectorStoreUrl")
    vector_store_api_key: Optional[str] = Field(None, alias="vectorStoreApiKey")

    def to_domain(self) -> Optional[VectorStoreSettings]:
        if not self.vector_store_url or not self.vector_store_url.strip():
            return None
        return VectorStoreSettings(url=self.vector_store_url, api_key=self.vector_store_api_key or None)


class SettingsBundlePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    open_ai: Optional[ProviderSettingsPayload] = Field(None, alias="openAI")
    global_settings: Optional[GlobalSettingsPayload] = Field(None, alias="globalSettings")

    def to_domain(self) -> SettingsBundle:
        return SettingsBundle(
            embedding_provider=self.open_ai.to_domain() if self.open_ai else None,
            vector_store=self.global_settings.to_domain() if self.global_settings else None,
        )


class SearchCallParams(BaseModel):
    """Arguments of the `search` channel command"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    query: str = Field(..., min_length=1)
    collection_names: List[str] = Field(..., min_length=1, alias="collectionNames")
    limit: int = Field(DEFAULT_SEARCH_LIMIT, gt=0)
    score_threshold: float = Field(DEFAULT_SCORE_THRESHOLD, ge=0.0, le=1.0)
    with_payload: bool = True
    settings: SettingsBundlePayload = Field(default_factory=SettingsBundlePayload)

    @field_validator("collection_names", mode="before")
    @classmethod
    def wrap_single_name(cls, value: Union[str, List[str]]) -> List[str]:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query cannot be blank")
        return value

    @field_validator("collection_names")
    @classmethod
    def names_not_blank(cls, value: List[str]) -> List[str]:
        if any(not name or not name.strip() for name in value):
            raise ValueError("collection names cannot be blank")
        return value

    def to_domain(self) -> SearchRequest:
        return SearchRequest(
            query=self.query,
            collection_names=tuple(self.collection_names),
            limit=self.limit,
            score_threshold=self.score_threshold,
            with_payload=self.with_payload,
            settings=self.settings.to_domain(),
        )


class ErrorResponse(BaseModel):
    error: str
    detail: str
    context: Dict[str, Any] = Field(default_factory=dict)
