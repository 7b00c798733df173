"""Pydantic models for the extract endpoint's request and response bodies."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExtractionKind(str, Enum):
    REGISTRATION = "reg"
    VIN = "vin"


class ExtractionResult(BaseModel):
    """One plate or VIN read from the image. Serialized with ``type`` as the tag key."""

    model_config = ConfigDict(populate_by_name=True)

    kind: ExtractionKind = Field(alias="type")
    value: str
    uncertain: bool = False


class ExtractionResponse(BaseModel):
    results: list[ExtractionResult]


class ExtractRequest(BaseModel):
    image: str | None = None


class ErrorResponse(BaseModel):
    error: str
