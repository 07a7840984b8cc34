"""Multi-provider continuation token."""

from typing import Self

from pydantic import ConfigDict, Field, ValidationError, model_validator

from ..common.errors import TokenError
from ..common.pydantic import FrozenBaseModel


class ProviderToken(FrozenBaseModel):
    """Sub-token of one provider."""

    model_config = ConfigDict(frozen=True, strict=True, ser_json_bytes="base64", val_json_bytes="base64")

    id: str
    tok: bytes


class MultiToken(FrozenBaseModel):
    """Resumable state of a merged stream.

    ``provs`` lists every provider that still had results, ``cur`` is the index
    of the entry to serve first on resumption. ``cur == len(provs)`` wraps
    around to the first entry.
    """

    provs: list[ProviderToken] = Field(default_factory=list)
    cur: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_cursor(self) -> Self:
        if self.cur > len(self.provs):
            raise ValueError(f"cursor {self.cur} out of range for {len(self.provs)} providers")
        return self

    def encode(self) -> bytes:
        """Serialize to the opaque wire form."""
        return self.model_dump_json().encode()

    @classmethod
    def decode(cls, data: bytes) -> Self:
        """Parse the wire form. Raises ``TokenError`` on malformed input."""
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise TokenError(f"malformed token: {e}") from e
