from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query

from shodhsahayak.api.dependencies import get_storage
from shodhsahayak.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from shodhsahayak.core.exceptions import ValidationError
from shodhsahayak.domain.models import AgencyCount, ProposalList, ProposalPage
from shodhsahayak.storage.proposal_storage import ProposalStorage

router = APIRouter(prefix="/api", tags=["proposals"])


@router.get("/proposals", response_model=ProposalPage)
async def list_proposals(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    storage: ProposalStorage = Depends(get_storage),
) -> ProposalPage:
    """Newest proposals first, paginated."""
    rows, total = await storage.list_proposals(page, limit)
    return ProposalPage(
        count=len(rows),
        total=total,
        page=page,
        totalPages=math.ceil(total / limit),
        data=rows,
    )


@router.get("/proposals/search", response_model=ProposalList)
async def search_proposals(
    q: str | None = None,
    storage: ProposalStorage = Depends(get_storage),
) -> ProposalList:
    """Case-insensitive substring search over title and agency."""
    query = (q or "").strip()
    if not query:
        raise ValidationError('Search query parameter "q" is required')
    rows = await storage.search(query)
    return ProposalList(count=len(rows), query=query, data=rows)


@router.get("/proposals/agency/{agency}", response_model=ProposalList)
async def proposals_by_agency(
    agency: str,
    storage: ProposalStorage = Depends(get_storage),
) -> ProposalList:
    rows = await storage.by_agency(agency)
    return ProposalList(count=len(rows), agency=agency, data=rows)


@router.get("/agencies")
async def list_agencies(
    storage: ProposalStorage = Depends(get_storage),
) -> dict[str, object]:
    """Agencies with their proposal counts, busiest first."""
    counts: list[AgencyCount] = await storage.agency_counts()
    return {"success": True, "count": len(counts), "data": [c.model_dump() for c in counts]}
