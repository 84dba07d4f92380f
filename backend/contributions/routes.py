# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
import logging

from core.database import get_db
from core.database.models import Contribution, ProposalStatus
from core.errors import ForbiddenError
from core.security.principal import Principal, get_principal
from core.services.storage_service import StagingService, get_staging_service
from core.utils.serializers import paginate_response
from catalog.schemas import APIResponse
from .approval import ApprovalApplier
from .clustering import RelatedProposalClusterer
from .reconciler import OrphanReconciler
from .schemas import ContributionOut, ContributionRequest, RejectRequest
from .service import ContributionService
from .votes import VoteTally

logger = logging.getLogger(__name__)

# ------------------------------ ROUTER SETUP ------------------------------
router = APIRouter()

# ------------------------------ DEPENDENCY INJECTION ------------------------------

def get_contribution_service(
    db: Session = Depends(get_db),
    staging: StagingService = Depends(get_staging_service),
) -> ContributionService:
    """Dependency to get ContributionService instance."""
    return ContributionService(db, staging)

def get_approval_applier(
    db: Session = Depends(get_db),
    staging: StagingService = Depends(get_staging_service),
) -> ApprovalApplier:
    """Dependency to get ApprovalApplier instance."""
    return ApprovalApplier(db, staging)

def get_vote_tally(db: Session = Depends(get_db)) -> VoteTally:
    return VoteTally(db)

# ------------------------------ SERIALIZATION ------------------------------

def serialize_contribution(contribution: Contribution, votes: int = 0, is_new: Optional[bool] = None) -> Dict[str, Any]:
    out = ContributionOut.model_validate(contribution).model_copy(update={"votes": votes, "is_new": is_new})
    data = out.model_dump(mode="json")
    if is_new is None:
        data.pop("is_new")
    return data

def serialize_contributions(contributions: List[Contribution], tally: VoteTally) -> List[Dict[str, Any]]:
    counts = tally.counts(c.id for c in contributions)
    return [serialize_contribution(c, counts.get(c.id, 0)) for c in contributions]

# ------------------------------ SUBMISSION ------------------------------

@router.post("", response_model=APIResponse, status_code=201, tags=["Contributions"])
async def submit_contribution(
    request: ContributionRequest,
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Submit a NEW vehicle or an UPDATE to an existing one."""
    contribution = service.submit(
        principal,
        request.vehicle_data,
        change_type=request.change_type,
        target_vehicle_id=request.target_vehicle_id,
    )
    return APIResponse(
        success=True,
        data={"message": "Contribution submitted successfully", "contribution": serialize_contribution(contribution)},
    )

@router.post("/check-duplicate", response_model=APIResponse, tags=["Contributions"])
async def check_duplicate(
    vehicle_data: Dict[str, Any],
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Preview the duplicate verdict for a candidate vehicle."""
    verdict = service.check_duplicate(vehicle_data)
    return APIResponse(success=True, data=verdict.model_dump(mode="json"))

# ------------------------------ LISTINGS ------------------------------

@router.get("/pending", response_model=APIResponse, tags=["Contributions"])
async def get_pending_contributions(
    service: ContributionService = Depends(get_contribution_service),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """Pending contributions with their vote counts, newest first."""
    contributions = service.list_pending()
    return APIResponse(
        success=True,
        data={"contributions": serialize_contributions(contributions, tally), "total": len(contributions)},
    )

@router.get("", response_model=APIResponse, tags=["Contributions"])
async def get_contributions(
    status: Optional[ProposalStatus] = Query(None, description="Filter by status"),
    user_id: Optional[int] = Query(None, description="Filter by submitter"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", description="Sort by creation time"),
    service: ContributionService = Depends(get_contribution_service),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """All contributions with filtering and pagination."""
    contributions, total = service.list_all(status=status, user_id=user_id, page=page, limit=limit, sort_order=sort_order)
    data = paginate_response(
        serialize_contributions(contributions, tally), total, page, limit, items_key="contributions"
    )
    return APIResponse(success=True, data=data)

@router.get("/my", response_model=APIResponse, tags=["Contributions"])
async def get_my_contributions(
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """Contributions submitted by the caller."""
    contributions = service.list_mine(principal)
    return APIResponse(
        success=True,
        data={"contributions": serialize_contributions(contributions, tally), "total": len(contributions)},
    )

@router.get("/recent", response_model=APIResponse, tags=["Contributions"])
async def get_recent_contributions(
    limit: int = Query(5, ge=1, le=10, description="Number of contributions"),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Latest contributions flagged as new inside the recent window."""
    rows = service.recent(limit)
    return APIResponse(
        success=True,
        data={
            "contributions": [serialize_contribution(c, is_new=is_new) for c, is_new in rows],
            "total": len(rows),
        },
    )

# ------------------------------ MAINTENANCE ------------------------------

@router.delete("/orphans", response_model=APIResponse, tags=["Maintenance"])
async def reconcile_orphans(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> APIResponse:
    """Remove UPDATE contributions whose target vehicle is gone (admin only)."""
    if not principal.is_admin:
        raise ForbiddenError("Admin role required")
    report = OrphanReconciler(db).reconcile()
    return APIResponse(success=True, data=report.model_dump(mode="json"))

# ------------------------------ SINGLE CONTRIBUTION ------------------------------

@router.get("/{contribution_id}", response_model=APIResponse, tags=["Contributions"])
async def get_contribution(
    contribution_id: int = Path(..., description="Contribution ID"),
    service: ContributionService = Depends(get_contribution_service),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """Get one contribution with its vote count."""
    contribution = service.get(contribution_id)
    return APIResponse(
        success=True,
        data={"contribution": serialize_contribution(contribution, tally.count(contribution_id))},
    )

@router.put("/{contribution_id}", response_model=APIResponse, tags=["Contributions"])
async def edit_contribution(
    request: ContributionRequest,
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Replace the payload of a pending contribution (owner only)."""
    contribution = service.edit(
        principal,
        contribution_id,
        request.vehicle_data,
        change_type=request.change_type,
        target_vehicle_id=request.target_vehicle_id,
    )
    return APIResponse(
        success=True,
        data={"message": "Contribution updated successfully", "contribution": serialize_contribution(contribution)},
    )

@router.post("/{contribution_id}/cancel", response_model=APIResponse, tags=["Contributions"])
async def cancel_contribution(
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Cancel a pending contribution (owner only)."""
    contribution, images_cleaned = service.cancel(principal, contribution_id)
    return APIResponse(
        success=True,
        data={
            "message": "Contribution cancelled successfully",
            "contribution": serialize_contribution(contribution),
            "images_cleaned_up": images_cleaned,
        },
    )

@router.post("/{contribution_id}/resubmit", response_model=APIResponse, status_code=201, tags=["Contributions"])
async def resubmit_contribution(
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    service: ContributionService = Depends(get_contribution_service),
) -> APIResponse:
    """Clone a rejected contribution into a new pending one (owner only)."""
    contribution = service.resubmit(principal, contribution_id)
    return APIResponse(
        success=True,
        data={"message": "Contribution resubmitted successfully", "contribution": serialize_contribution(contribution)},
    )

@router.post("/{contribution_id}/vote", response_model=APIResponse, tags=["Contributions"])
async def vote_contribution(
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """Endorse someone else's pending contribution."""
    votes = tally.vote(principal, contribution_id)
    return APIResponse(success=True, data={"message": "Vote recorded", "votes": votes})

@router.post("/{contribution_id}/approve", response_model=APIResponse, tags=["Moderation"])
async def approve_contribution(
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    applier: ApprovalApplier = Depends(get_approval_applier),
) -> APIResponse:
    """Apply a pending contribution to the catalog (moderator only)."""
    contribution = applier.approve(principal, contribution_id)
    return APIResponse(
        success=True,
        data={"message": "Contribution approved", "contribution": serialize_contribution(contribution)},
    )

@router.post("/{contribution_id}/reject", response_model=APIResponse, tags=["Moderation"])
async def reject_contribution(
    request: RejectRequest,
    contribution_id: int = Path(..., description="Contribution ID"),
    principal: Principal = Depends(get_principal),
    applier: ApprovalApplier = Depends(get_approval_applier),
) -> APIResponse:
    """Reject a pending contribution with a comment (moderator only)."""
    contribution = applier.reject(principal, contribution_id, request.comment)
    return APIResponse(
        success=True,
        data={"message": "Contribution rejected", "contribution": serialize_contribution(contribution)},
    )

@router.get("/{contribution_id}/related", response_model=APIResponse, tags=["Moderation"])
async def get_related_contributions(
    contribution_id: int = Path(..., description="Contribution ID"),
    db: Session = Depends(get_db),
    tally: VoteTally = Depends(get_vote_tally),
) -> APIResponse:
    """Other pending proposals about the same vehicle."""
    related = RelatedProposalClusterer(db).related_to(contribution_id)
    return APIResponse(
        success=True,
        data={"contributions": serialize_contributions(related, tally), "total": len(related)},
    )

# ------------------------------ END OF FILE ------------------------------
