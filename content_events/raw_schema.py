from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from .errors import RecordMalformedError

U32_MAX = 2**32 - 1

UnixSeconds = Annotated[StrictInt, Field(ge=0, le=U32_MAX)]


def _require_utf8(v: Any) -> Any:
    # Undecodable input bytes reach here as lone surrogates.
    if isinstance(v, str):
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("contains bytes that are not valid UTF-8") from None
    return v


class RawProperties(BaseModel):
    """
    The `properties` object of a raw analytics record.

    Required fields are strictly typed. The identity candidates are permissive:
    a value of the wrong type counts as absent instead of failing the record.
    Any of these strings holding undecodable input bytes fails the record.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    post_id: StrictStr = Field(validation_alias="id")
    time: UnixSeconds

    # Ordered by resolution priority; see identity.resolve_identity.
    user_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("$user_id", "user_id"),
    )
    legacy_distinct_id_before_identity: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "$distinct_id_before_identity", "distinct_id_before_identity"
        ),
    )
    distinct_id: str | None = None

    @field_validator("post_id", mode="before")
    @classmethod
    def _post_id_is_utf8(cls, v: Any) -> Any:
        return _require_utf8(v)

    @field_validator(
        "user_id",
        "legacy_distinct_id_before_identity",
        "distinct_id",
        mode="before",
    )
    @classmethod
    def _non_string_identity_is_absent(cls, v: Any) -> str | None:
        return _require_utf8(v) if isinstance(v, str) else None

    def identity_candidates(self) -> tuple[str | None, str | None, str | None]:
        return (self.user_id, self.legacy_distinct_id_before_identity, self.distinct_id)


class RawRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    event_type: StrictStr = Field(validation_alias="event")
    properties: RawProperties

    @field_validator("event_type", mode="before")
    @classmethod
    def _event_type_is_utf8(cls, v: Any) -> Any:
        return _require_utf8(v)


def parse_raw_record(value: Any, *, index: int | None = None) -> RawRecord:
    """
    Validate one decoded JSON value into a RawRecord.

    Raises RecordMalformedError with a one-line summary of every schema violation.
    """
    try:
        return RawRecord.model_validate(value)
    except ValidationError as e:
        raise RecordMalformedError(_format_validation_error(e), index=index) from e


def _format_validation_error(err: ValidationError) -> str:
    parts: list[str] = []
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts) or "invalid record"
