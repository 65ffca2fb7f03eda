"""Schemas shared by several route groups."""
from typing import Annotated, Optional
from pydantic import BaseModel, StringConstraints

# Squads are an open team partition; the columns hold up to 20 characters
SQUAD_MAX_LENGTH = 20
SquadName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=SQUAD_MAX_LENGTH)]


class SuccessResponse(BaseModel):
    success: bool = True


class VersionedSuccessResponse(SuccessResponse):
    """Returned by mutations that bump a deliverable version."""
    version: int


class CreatedResponse(BaseModel):
    id: int


class ErrorResponse(BaseModel):
    detail: str
    error: Optional[str] = None
