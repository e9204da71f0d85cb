"""Pydantic schemas for favorites."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FavoriteCreate(BaseModel):
    property_id: uuid.UUID


class FavoriteRead(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    property_id: uuid.UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
