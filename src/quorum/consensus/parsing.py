"""Vote extraction from oracle output."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from quorum.consensus.models import VoteValue
from quorum.core.parsing import ParseResult, extract_validated


class VotePayload(BaseModel):
    """Schema of the JSON object a participant's oracle must return."""

    vote: VoteValue
    confidence: float = Field(ge=0, le=100)
    reasoning: str = ""

    @field_validator("vote", mode="before")
    @classmethod
    def _normalise_vote(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


def parse_vote(text: str) -> ParseResult[VotePayload]:
    """Parse an oracle answer into a vote payload, never raising."""
    return extract_validated(text, VotePayload)
