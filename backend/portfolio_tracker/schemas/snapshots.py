# backend/portfolio_tracker/schemas/snapshots.py
"""Pydantic schemas for the snapshot trigger endpoint."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class SnapshotSummary(BaseModel):
    date: datetime = Field(..., description="Bucket start (UTC)")
    portfolio_value: Decimal
    invested: Decimal


class SnapshotTriggerResponse(BaseModel):
    success: bool = True
    snapshot: SnapshotSummary
