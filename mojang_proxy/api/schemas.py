"""Pydantic response schemas for the Mojang proxy API.

FastAPI uses these models for serialization and for the generated OpenAPI
document.  Field names follow the JSON contract clients already depend on
(``skinProperty`` is camelCase on the wire).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mojang_proxy.services.batch_coalescer import NameLookupResult
from mojang_proxy.services.profile_resolver import ProfileLookupResult
from mojang_proxy.utils.errors import ErrorType


class UUIDResponse(BaseModel):
    """Result of a username -> UUID lookup."""

    exists: bool
    uuid: str | None = Field(
        default=None,
        description="Canonical dashed lowercase UUID, or null if the player does not exist",
        examples=["069a79f4-44e9-4726-a5be-fca90e38aaf6"],
    )

    @classmethod
    def from_result(cls, result: NameLookupResult) -> UUIDResponse:
        return cls(exists=result.exists, uuid=result.uuid)


class SkinPropertySchema(BaseModel):
    """The signed ``textures`` profile property."""

    value: str
    signature: str


class ProfileResponse(BaseModel):
    """Result of a UUID -> skin property lookup."""

    model_config = ConfigDict(populate_by_name=True)

    exists: bool
    skin_property: SkinPropertySchema | None = Field(default=None, alias="skinProperty")

    @classmethod
    def from_result(cls, result: ProfileLookupResult) -> ProfileResponse:
        skin = result.skin_property
        return cls(
            exists=result.exists,
            skin_property=(
                SkinPropertySchema(value=skin.value, signature=skin.signature) if skin else None
            ),
        )


class ErrorResponse(BaseModel):
    """Body returned for every failed lookup."""

    error: ErrorType


class RateLimitResponse(BaseModel):
    """Body returned when a client exceeds its request quota."""

    error: str = "rate_limit_exceeded"
    detail: str
    retry_after: int


class HealthResponse(BaseModel):
    status: str = "UP"
