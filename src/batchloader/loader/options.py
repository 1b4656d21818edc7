"""Loader configuration and validation.

Options are validated once at construction, before any load can happen.
Every violation surfaces as InvalidArgument.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator

from batchloader.cache import CacheStore
from batchloader.config import get_settings
from batchloader.errors import InvalidArgument


class LoaderOptions(BaseModel):
    """Validated DataLoader configuration.

    Example:
        >>> opts = LoaderOptions.build(fetch_users, max_batch_size=100)
        >>> opts.max_batch_size
        100
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", arbitrary_types_allowed=True,
        json_schema_extra={"title": "Loader Options"},
    )

    batch_fn: Callable[..., Any] = Field(exclude=True)
    cache: bool = True
    cache_key_fn: Callable[[Any], Any] | None = Field(default=None, exclude=True)
    max_batch_size: int | float = math.inf
    schedule_fn: Callable[..., Any] | None = Field(default=None, exclude=True)
    cache_map: Any = Field(default=None, exclude=True)
    name: str | None = None

    @field_validator("batch_fn", mode="before")
    @classmethod
    def _callable_batch_fn(cls, v: object) -> object:
        if not callable(v):
            raise ValueError(
                "DataLoader must be constructed with a function which accepts a sequence of keys "
                f"and returns an awaitable sequence of values, but got: {v!r}."
            )
        return v

    @field_validator("cache_key_fn", "schedule_fn", mode="before")
    @classmethod
    def _optional_callable(cls, v: object, info: ValidationInfo) -> object:
        if v is not None and not callable(v):
            raise ValueError(f"{info.field_name} must be callable, but got: {v!r}.")
        return v

    @field_validator("max_batch_size", mode="before")
    @classmethod
    def _positive_size(cls, v: object) -> object:
        if v is None:
            return math.inf
        if isinstance(v, bool) or not isinstance(v, Real) or math.isnan(v) or v < 1:
            raise ValueError(f"max_batch_size must be a positive number: {v!r}")
        if math.isinf(v):
            return math.inf
        return v

    @field_validator("cache_map", mode="before")
    @classmethod
    def _store_protocol(cls, v: object) -> object:
        if v is not None and not isinstance(v, CacheStore):
            raise ValueError(f"cache_map must implement the CacheStore protocol, but got: {v!r}.")
        return v

    @model_validator(mode="after")
    def _store_needs_cache(self) -> LoaderOptions:
        if self.cache_map is not None and not self.cache:
            raise ValueError("cache_map cannot be used when cache is disabled")
        return self

    @classmethod
    def build(
        cls,
        batch_fn: object,
        *,
        cache: bool | None = None,
        cache_key_fn: object = None,
        max_batch_size: object = None,
        schedule_fn: object = None,
        cache_map: object = None,
        name: str | None = None,
    ) -> LoaderOptions:
        """Validate options, filling unset ones from LoaderSettings. Raises InvalidArgument."""
        try:
            settings = get_settings()
            return cls(
                batch_fn=batch_fn,
                cache=settings.cache.enabled if cache is None else cache,
                cache_key_fn=cache_key_fn,
                max_batch_size=settings.batch.max_size if max_batch_size is None else max_batch_size,
                schedule_fn=schedule_fn,
                cache_map=cache_map,
                name=name,
            )
        except ValidationError as e:
            raise InvalidArgument(_first_message(e)) from None


def _first_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    if (error := first.get("ctx", {}).get("error")) is not None:
        return str(error)
    return f"{'.'.join(str(p) for p in first['loc'])}: {first['msg']}"
