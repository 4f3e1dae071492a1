"""Group proposal API routes.

FastAPI router for the governance engine: requirement checks, proposal
creation, voting, cancellation, reads and reconciliation of approved
proposals whose apply failed.

The acting user comes from the X-User-Id header. Bodies that name a
different voter or canceller are rejected with 403.

Error mapping (RFC 7807 bodies):
    ProposalValidationError          -> 400
    NotMemberError, ForbiddenError   -> 403
    ProposalNotFoundError,
    GroupNotFoundError               -> 404
    InvalidProposalStateError,
    DuplicateVoteError               -> 409
    ApplyFailedError                 -> 502
    StoreUnavailableError            -> 503
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from poolfund.api.dependencies.proposal import get_acting_user_id, get_lifecycle_service
from poolfund.api.models.proposal import (
    CancelProposalRequestModel,
    CastVoteRequestModel,
    ChangeTypeEnum,
    CreateProposalRequestModel,
    CreateRuleChangeRequestModel,
    GovernanceErrorResponse,
    ProposalListResponse,
    ProposalRequirementResponse,
    ProposalResponse,
)
from poolfund.application.services.proposal_lifecycle_service import (
    CreateProposalRequest,
    ProposalLifecycleService,
)
from poolfund.domain.errors import (
    ApplyFailedError,
    DuplicateVoteError,
    ForbiddenError,
    GroupNotFoundError,
    InvalidProposalStateError,
    NotMemberError,
    ProposalNotFoundError,
    ProposalValidationError,
    StoreUnavailableError,
)
from poolfund.domain.exceptions import PoolFundError
from poolfund.domain.models.proposal import ProposalType, payload_from_dict
from poolfund.domain.models.proposal_requirement import ChangeType

router = APIRouter(prefix="/v1/groups/{group_id}/proposals", tags=["proposals"])

ERROR_TYPE_BASE = "urn:poolfund:proposal"

_ERROR_STATUS: list[tuple[type[PoolFundError], int, str, str]] = [
    (ProposalValidationError, 400, "invalid-request", "Invalid Proposal Request"),
    (NotMemberError, 403, "not-member", "Not a Group Member"),
    (ForbiddenError, 403, "forbidden", "Forbidden"),
    (ProposalNotFoundError, 404, "not-found", "Proposal Not Found"),
    (GroupNotFoundError, 404, "group-not-found", "Group Not Found"),
    (InvalidProposalStateError, 409, "invalid-state", "Proposal Not Open"),
    (DuplicateVoteError, 409, "duplicate-vote", "Already Voted"),
    (ApplyFailedError, 502, "apply-failed", "Apply Failed"),
    (StoreUnavailableError, 503, "store-unavailable", "Service Unavailable"),
]

_ERROR_RESPONSES = {
    400: {"model": GovernanceErrorResponse, "description": "Invalid request"},
    403: {"model": GovernanceErrorResponse, "description": "Not a member or not allowed"},
    404: {"model": GovernanceErrorResponse, "description": "Group or proposal not found"},
    409: {"model": GovernanceErrorResponse, "description": "Proposal not open or already voted"},
    503: {"model": GovernanceErrorResponse, "description": "Proposal store unavailable"},
}


def _problem(
    request: Request,
    status_code: int,
    slug: str,
    title: str,
    detail: str,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        headers=headers,
        detail={
            "type": f"{ERROR_TYPE_BASE}:{slug}",
            "title": title,
            "status": status_code,
            "detail": detail,
            "instance": str(request.url),
        },
    )


def _to_http(error: PoolFundError, request: Request) -> HTTPException:
    for error_type, status_code, slug, title in _ERROR_STATUS:
        if isinstance(error, error_type):
            headers = {"Retry-After": "1"} if status_code == 503 else None
            return _problem(request, status_code, slug, title, str(error), headers)
    return _problem(request, 500, "internal", "Internal Error", str(error))


def _require_same_user(
    request: Request, acting_user_id: str, claimed_user_id: str | None, action: str
) -> None:
    if claimed_user_id is not None and claimed_user_id != acting_user_id:
        raise _problem(
            request,
            403,
            "forbidden",
            "Forbidden",
            f"Cannot {action} on behalf of another user",
        )


@router.get(
    "/requirement",
    response_model=ProposalRequirementResponse,
    responses={404: _ERROR_RESPONSES[404]},
    summary="Check whether a change requires a proposal",
)
async def get_proposal_requirement(
    group_id: str,
    request: Request,
    change_type: ChangeTypeEnum = Query(..., description="Kind of change"),
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalRequirementResponse:
    try:
        requirement = await service.requires_proposal(
            group_id, ChangeType(change_type.value), user_id
        )
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalRequirementResponse.from_domain(requirement)


@router.post(
    "",
    response_model=ProposalResponse,
    status_code=201,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 403, 404, 503)},
    summary="Open a proposal",
)
async def create_proposal(
    group_id: str,
    request_data: CreateProposalRequestModel,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    proposal_type = ProposalType(request_data.type.value)
    try:
        payload = payload_from_dict(proposal_type, request_data.payload)
    except ValueError as e:
        raise _problem(
            request, 400, "invalid-request", "Invalid Proposal Request", str(e)
        ) from None

    try:
        proposal = await service.create_proposal(
            group_id,
            CreateProposalRequest(
                proposal_type=proposal_type,
                payload=payload,
                proposed_by=user_id,
                proposed_by_name=request_data.proposed_by_name,
                title=request_data.title,
                description=request_data.description,
                expires_at=request_data.expires_at,
            ),
        )
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.post(
    "/rule-changes",
    response_model=ProposalResponse,
    status_code=201,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 403, 404, 503)},
    summary="Open a rule change proposal from current and proposed rules",
)
async def create_rule_change_proposal(
    group_id: str,
    request_data: CreateRuleChangeRequestModel,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    try:
        proposal = await service.create_rule_change_proposal(
            group_id,
            proposer_id=user_id,
            current_rules=request_data.current_rules,
            proposed_rules=request_data.proposed_rules,
            title=request_data.title,
            description=request_data.description,
            proposer_name=request_data.proposed_by_name,
        )
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.get(
    "",
    response_model=ProposalListResponse,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 503)},
    summary="List a group's proposals",
)
async def list_proposals(
    group_id: str,
    request: Request,
    status: str | None = Query(
        default=None,
        description="'active', 'resolved' or a status such as 'Approved'",
    ),
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalListResponse:
    try:
        proposals = await service.list_proposals(group_id, status_filter=status)
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalListResponse(
        proposals=[ProposalResponse.from_domain(p) for p in proposals],
        total=len(proposals),
    )


@router.get(
    "/{proposal_id}",
    response_model=ProposalResponse,
    responses={k: _ERROR_RESPONSES[k] for k in (404, 503)},
    summary="Get a proposal",
)
async def get_proposal(
    group_id: str,
    proposal_id: UUID,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    try:
        proposal = await service.get_proposal(group_id, proposal_id)
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.post(
    "/{proposal_id}/votes",
    response_model=ProposalResponse,
    responses=_ERROR_RESPONSES,
    summary="Cast a vote",
)
async def cast_vote(
    group_id: str,
    proposal_id: UUID,
    request_data: CastVoteRequestModel,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    _require_same_user(request, user_id, request_data.voter_id, "vote")
    try:
        proposal = await service.cast_vote(
            group_id,
            proposal_id,
            voter_id=user_id,
            approve=request_data.approve,
            comment=request_data.comment,
        )
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.post(
    "/{proposal_id}/cancel",
    response_model=ProposalResponse,
    responses=_ERROR_RESPONSES,
    summary="Cancel an open proposal",
)
async def cancel_proposal(
    group_id: str,
    proposal_id: UUID,
    request_data: CancelProposalRequestModel,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    _require_same_user(request, user_id, request_data.cancelled_by, "cancel")
    try:
        proposal = await service.cancel_proposal(
            group_id, proposal_id, actor_id=user_id, reason=request_data.reason
        )
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.post(
    "/{proposal_id}/reconcile",
    response_model=ProposalResponse,
    responses={
        **{k: _ERROR_RESPONSES[k] for k in (404, 409, 503)},
        502: {"model": GovernanceErrorResponse, "description": "Apply failed again"},
    },
    summary="Retry applying an approved proposal",
)
async def reconcile_proposal(
    group_id: str,
    proposal_id: UUID,
    request: Request,
    user_id: str = Depends(get_acting_user_id),
    service: ProposalLifecycleService = Depends(get_lifecycle_service),
) -> ProposalResponse:
    try:
        proposal = await service.reconcile_approved(group_id, proposal_id)
    except PoolFundError as e:
        raise _to_http(e, request) from None
    return ProposalResponse.from_domain(proposal)
