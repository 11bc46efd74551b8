"""Store configuration for pysubtree."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pysubtree.exceptions import SubtreeConfigError


def _env_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise SubtreeConfigError(f"{name} is not a boolean: {value!r}")


class StoreConfig(BaseModel):
    """Store configuration.

    Parameters
    ----------
    path_delimiter : str
        Separator between path segments. Defaults to ``"."`` so that
        ``"summary.total"`` walks ``state["summary"]["total"]``.
    flush_delay : float
        Seconds to wait before running a scheduled flush. ``0`` (the
        default) runs it on the next event-loop iteration.
    allow_attribute_paths : bool
        Let path segments traverse public attributes of non-container
        objects (dataclasses, pydantic models). When disabled only
        mappings and sequences are walked.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    path_delimiter: str = "."
    flush_delay: float = Field(default=0.0, ge=0.0)
    allow_attribute_paths: bool = True

    @field_validator("path_delimiter")
    @classmethod
    def _non_empty_delimiter(cls, value: str) -> str:
        if not value:
            raise ValueError("path_delimiter must be non-empty")
        if value in "[]":
            raise ValueError("path_delimiter cannot be a bracket")
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``PYSUBTREE_PATH_DELIMITER``, ``PYSUBTREE_FLUSH_DELAY`` and
        ``PYSUBTREE_ALLOW_ATTRIBUTE_PATHS``. Explicit keyword arguments
        override environment values.

        Raises
        ------
        SubtreeConfigError
            If a value (from the environment or an override) is invalid.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        delimiter = env.get("PYSUBTREE_PATH_DELIMITER")
        if delimiter is not None:
            config_kwargs["path_delimiter"] = delimiter

        delay_env = env.get("PYSUBTREE_FLUSH_DELAY")
        if delay_env is not None and "flush_delay" not in overrides:
            try:
                config_kwargs["flush_delay"] = float(delay_env)
            except ValueError as exc:
                raise SubtreeConfigError(f"PYSUBTREE_FLUSH_DELAY is not a number: {delay_env!r}") from exc

        if "allow_attribute_paths" not in overrides:
            config_kwargs["allow_attribute_paths"] = _env_bool(
                "PYSUBTREE_ALLOW_ATTRIBUTE_PATHS",
                env.get("PYSUBTREE_ALLOW_ATTRIBUTE_PATHS"),
                True,
            )

        config_kwargs.update(overrides)

        try:
            return cls(**config_kwargs)
        except ValidationError as exc:
            raise SubtreeConfigError(str(exc)) from exc
