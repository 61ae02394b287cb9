"""
Centralized Pydantic Input Validation Layer

Validates user input before it reaches the database.

Validation Categories:
1. Identifiers - UUID format for users, habits and goals
2. Habit Input - Name, frequency, target, goal association (create and update)
"""

import logging
import re
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator

from src.models.habit import FREQUENCIES

logger = logging.getLogger(__name__)

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE
)


# ============================================================================
# IDENTIFIER VALIDATION
# ============================================================================

def is_valid_uuid(value: Any) -> bool:
    """Check that value is a UUID string (any version)"""
    return isinstance(value, str) and bool(_UUID_PATTERN.match(value))


# ============================================================================
# HABIT INPUT VALIDATION
# ============================================================================

def _clean_name(v: str) -> str:
    """Trim whitespace and reject empty names"""
    trimmed = v.strip()
    if not trimmed:
        raise ValueError("Habit name is required")
    return trimmed


def _clean_frequency(v: str) -> str:
    """Normalize case and restrict to known frequencies"""
    normalized = v.strip().lower()
    if normalized not in FREQUENCIES:
        raise ValueError(f"Frequency must be one of: {', '.join(FREQUENCIES)}")
    return normalized


def _check_goal_id(v: Optional[str]) -> Optional[str]:
    """Goal ids are UUIDs"""
    if v is not None and not is_valid_uuid(v):
        raise ValueError("Invalid goal ID format")
    return v


class HabitInput(BaseModel):
    """
    Validate a new habit

    Constraints:
    - Name: 1-200 characters after trimming
    - Frequency: daily, weekly or monthly (case-insensitive), default daily
    - Target: positive count, default 1
    - Goal ID: UUID when provided
    """
    name: str = Field(..., max_length=200, description="Habit name")
    description: Optional[str] = Field(default=None, max_length=2000)
    frequency: str = Field(default="daily", description="daily, weekly or monthly")
    target: Optional[int] = Field(default=1, ge=1, description="Completions per period")
    goal_id: Optional[str] = Field(default=None, description="Associated goal")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        return _clean_frequency(v)

    @field_validator('goal_id')
    @classmethod
    def validate_goal_id(cls, v: Optional[str]) -> Optional[str]:
        return _check_goal_id(v)


class HabitUpdate(BaseModel):
    """
    Validate a partial habit update

    Only fields present in the request are changed. description, target and
    goal_id may be set to null; name and frequency may not.
    """
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    frequency: Optional[str] = None
    target: Optional[int] = Field(default=None, ge=1)
    goal_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Habit name cannot be null")
        return _clean_name(v)

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Frequency cannot be null")
        return _clean_frequency(v)

    @field_validator('goal_id')
    @classmethod
    def validate_goal_id(cls, v: Optional[str]) -> Optional[str]:
        return _check_goal_id(v)

    def changes(self) -> dict:
        """Fields the caller actually sent"""
        return self.model_dump(exclude_unset=True)
