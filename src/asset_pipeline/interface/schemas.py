"""Pydantic DTOs for the command-line boundary."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from asset_pipeline.domain.exceptions import ConfigurationError
from asset_pipeline.domain.value_objects import BuildEnvironment


class BuildRequest(BaseModel):
    """Validated ``asset-build`` invocation."""

    env: str
    watch: bool = False
    src: str

    @field_validator("env")
    @classmethod
    def _must_be_directory_safe(cls, v: str) -> str:
        try:
            return BuildEnvironment.from_string(v).name
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("src")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "src must not be empty."
            raise ValueError(msg)
        return stripped

    @property
    def environment(self) -> BuildEnvironment:
        return BuildEnvironment(name=self.env)
