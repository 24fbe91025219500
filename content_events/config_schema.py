from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .decoder import DEFAULT_CHUNK_SIZE

# Default input location.
DEFAULT_INPUT_PATH = "./data.csv"

PositiveInt = Annotated[int, Field(ge=1)]

UnknownEventPolicy = Literal["reject", "abort"]


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    input_path: str = DEFAULT_INPUT_PATH
    debug: bool = False
    unknown_event_policy: UnknownEventPolicy = "reject"
    chunk_size: PositiveInt = DEFAULT_CHUNK_SIZE

    @field_validator("input_path")
    @classmethod
    def _input_path_must_be_non_empty(cls, v: str) -> str:
        path = (v or "").strip()
        if not path:
            raise ValueError("must be a non-empty path")
        return path

    @property
    def aborts_on_unknown_event(self) -> bool:
        return self.unknown_event_policy == "abort"
