"""Pydantic schemas for aggregator configuration and institutions."""

from typing import Optional

from pydantic import BaseModel


class ConfigurationStatusResponse(BaseModel):
    """Whether aggregator credentials are stored and validated."""

    is_configured: bool
    has_credentials: bool
    config_id: Optional[str] = None

    model_config = {"from_attributes": True}


class SaveConfigurationRequest(BaseModel):
    """Request body for saving aggregator credentials."""

    secret_id: str = ""
    secret_key: str = ""


class SaveConfigurationResponse(BaseModel):
    configured: bool


class RemoveConfigurationResponse(BaseModel):
    status: str = "ok"
    removed: bool


class InstitutionResponse(BaseModel):
    """A bank the aggregator can connect to."""

    id: str
    name: str
    bic: Optional[str] = None
    transaction_total_days: Optional[str] = None
    countries: list[str] = []
    logo: Optional[str] = None

    model_config = {"from_attributes": True}
