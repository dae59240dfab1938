"""Schemas for expiry classification results."""

from pydantic import BaseModel, ConfigDict

from smartshelf.core.models import ExpiryStatus


class ExpiryClassification(BaseModel):
    """Freshness classification derived from an expiry date."""

    model_config = ConfigDict(frozen=True)

    status: ExpiryStatus
    days_until_expiry: int
    message: str
    detail_message: str
    label: str
    color: str
