from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_AGENCY = "Unknown Agency"
MULTIPLE_AGENCIES = "Multiple Agencies"
ROLLING_DEADLINE = "Rolling Deadline"
NOT_SPECIFIED = "Not specified"

ProposalKey = tuple[str, str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProposalRecord(BaseModel):
    """One funding opportunity found on a source page."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str
    agency: str = UNKNOWN_AGENCY
    start_date: str = Field(default=NOT_SPECIFIED, alias="startDate")
    end_date: str = Field(default=NOT_SPECIFIED, alias="endDate")
    link: str
    extracted_at: datetime = Field(default_factory=_utcnow, alias="extractedAt")

    @field_validator("title", "link")
    @classmethod
    def strip_required(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} cannot be empty")
        return v

    @property
    def key(self) -> ProposalKey:
        """Identity of a proposal: same title and same link."""
        return (self.title, self.link)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Source(BaseModel):
    """A polled page and the agency it speaks for."""

    model_config = ConfigDict(frozen=True)

    url: str
    agency: str | None
    aggregator: bool = False


class FetchedPage(BaseModel):
    """Success envelope of the content-fetch service, reduced to what extraction needs."""

    url: str
    markdown: str | None = None
    html: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScrapeSummary(BaseModel):
    """Outcome of one batch run."""

    found: int = 0
    new: int = 0
    inserted: int = 0
    failed_sources: list[str] = Field(default_factory=list)
    proposals: list[ProposalRecord] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None
    dry_run: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", exclude={"proposals"})
        payload["proposals"] = [proposal.to_payload() for proposal in self.proposals]
        return payload


class StoredProposal(BaseModel):
    """A row of the proposals table as served by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    agency: str | None = None
    from_date: str | None = None
    deadline: str | None = None
    link: str
    created_at: datetime | None = None


class ProposalPage(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    totalPages: int
    data: list[StoredProposal]


class ProposalList(BaseModel):
    success: bool = True
    count: int
    data: list[StoredProposal]
    agency: str | None = None
    query: str | None = None


class AgencyCount(BaseModel):
    agency: str
    proposal_count: int
