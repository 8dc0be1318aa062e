"""Pydantic schemas for rate limit rules."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from throttle.core.errors import ConfigurationAppError


class Algorithm(str, Enum):
    """Admission algorithms an engine can be wired with."""

    TOKEN_BUCKET = "TOKEN_BUCKET"
    SLIDING_WINDOW = "SLIDING_WINDOW"


class Rule(BaseModel):
    """Per-API admission rule.

    Rules are immutable values. Two rules with the same fields are equal, which
    is the only identity guarantee a rule service has to honor.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_seconds: int = Field(
        ...,
        gt=0,
        strict=True,
        description="Length of the window the quota is measured over, in seconds.",
    )
    quota: int = Field(
        ...,
        gt=0,
        strict=True,
        description="Maximum number of admitted requests per window for one key.",
    )
    algorithm: Algorithm = Field(
        Algorithm.TOKEN_BUCKET,
        description="Admission algorithm applied to keys governed by this rule.",
    )

    @property
    def window_ms(self) -> int:
        """Window length in milliseconds."""
        return self.window_seconds * 1000

    @classmethod
    def build(cls, **fields: Any) -> Rule:
        """Construct a rule, reporting invalid values as a configuration error.

        Raises:
            ConfigurationAppError: If any field is missing or out of range.
        """
        try:
            return cls(**fields)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "rule"
            raise ConfigurationAppError(
                code="invalid_rule",
                message=f"Invalid rate limit rule: {field}: {first.get('msg')}",
                details={"field": field, "actual_value": first.get("input")},
            ) from exc
