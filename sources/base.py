from typing import Protocol

from pydantic import BaseModel, ConfigDict, field_validator


class Quote(BaseModel):
    """A single displayable quotation. Equal text means equal quote."""
    model_config = ConfigDict(frozen=True)

    text: str

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("quote text must not be empty")
        return v


class QuoteSource(Protocol):
    async def load(self) -> list[Quote]: ...
