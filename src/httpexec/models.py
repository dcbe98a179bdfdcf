"""Typed shapes for credential options."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

SIGNATURE_METHODS = ("HMAC-SHA1", "HMAC-SHA256", "PLAINTEXT")


class HttpExecModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)


class BasicCredentials(HttpExecModel):
    username: str
    password: str


class SignedCredentials(HttpExecModel):
    key: str
    secret: str
    method: str = "HMAC-SHA1"

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        if value is None:
            return "HMAC-SHA1"
        if isinstance(value, str):
            value = value.upper()
            if value not in SIGNATURE_METHODS:
                raise ValueError(f"unsupported signature method: {value}")
        return value


def _string_keys(value: Mapping[Any, Any]) -> dict[str, Any]:
    return {str(key): item for key, item in value.items()}


def basic_credentials(value: Mapping[Any, Any]) -> BasicCredentials:
    return BasicCredentials.model_validate(_string_keys(value))


def signed_credentials(value: Mapping[Any, Any]) -> SignedCredentials:
    return SignedCredentials.model_validate(_string_keys(value))
