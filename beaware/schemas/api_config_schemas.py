import json
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from beaware.schemas.lookup_schemas import LookupType


def _check_json_object(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return value
    try:
        parsed = json.loads(value)
    except ValueError:
        raise ValueError("must be a JSON object")
    if not isinstance(parsed, dict):
        raise ValueError("must be a JSON object")
    return value


class ApiConfigCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: LookupType
    url: str = Field(..., min_length=1, max_length=1000)
    api_key: str = Field(..., min_length=1, max_length=500)
    enabled: bool = True
    description: Optional[str] = None
    rate_limit: int = Field(default=100, ge=1)
    timeout: int = Field(default=30, ge=1, le=300)
    parameter_mapping: Optional[str] = None
    headers: Optional[str] = None

    @field_validator("parameter_mapping", "headers")
    @classmethod
    def validate_json_templates(cls, value: Optional[str]) -> Optional[str]:
        return _check_json_object(value)


class ApiConfigUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[LookupType] = None
    url: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    api_key: Optional[str] = Field(default=None, min_length=1, max_length=500)
    enabled: Optional[bool] = None
    description: Optional[str] = None
    rate_limit: Optional[int] = Field(default=None, ge=1)
    timeout: Optional[int] = Field(default=None, ge=1, le=300)
    parameter_mapping: Optional[str] = None
    headers: Optional[str] = None

    @field_validator("parameter_mapping", "headers")
    @classmethod
    def validate_json_templates(cls, value: Optional[str]) -> Optional[str]:
        return _check_json_object(value)
