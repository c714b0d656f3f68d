"""
API v1 routes.

Defines REST endpoints for the signup approval workflow:
- POST /v1/signup-requests                   - Submit a request (public)
- POST /v1/signup-requests/approve/{token}   - Approve (admin)
- POST /v1/signup-requests/reject/{token}    - Reject (admin)
- GET  /v1/signup-requests                   - List by status (admin)
- GET  /v1/signup-requests/count             - Count by status (admin)
- GET  /v1/signup-requests/{signup_id}       - Fetch one record (admin)
- POST /v1/signup-requests/purge             - Retention purge (admin)
"""

from ipaddress import ip_address, ip_network

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from membergate.api.dependencies import (
    get_approval_flow,
    get_query_flow,
    get_rejection_flow,
    get_retention_flow,
    get_submission_flow,
    require_admin,
)
from membergate.api.models import (
    CountResponse,
    ErrorResponse,
    PurgeResponse,
    ReviewResponse,
    SignupListResponse,
    SignupRequest,
    SignupResponse,
    SignupSummary,
)
from membergate.config.settings import Settings, get_settings
from membergate.domain.exceptions import (
    ConflictError,
    ExpiredError,
    NotFoundError,
    PersistenceError,
    RateLimitedError,
    SignupError,
    UpstreamError,
    ValidationError,
)
from membergate.domain.queries import DEFAULT_PAGE_SIZE, QueryFlow, RetentionFlow
from membergate.domain.review import ApprovalFlow, RejectionFlow
from membergate.domain.submission import SubmissionFlow

router = APIRouter(prefix="/signup-requests", tags=["v1"])

_ERROR_STATUS: list[tuple[type[SignupError], int]] = [
    (ValidationError, 422),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ExpiredError, status.HTTP_410_GONE),
    (RateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_error(exc: SignupError) -> HTTPException:
    """Map a domain error to an HTTP error carrying only its short message."""
    code = next(
        (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return HTTPException(status_code=code, detail=exc.message, headers=headers)


def _is_trusted(host: str, trusted_proxies: list[str]) -> bool:
    try:
        address = ip_address(host)
    except ValueError:
        return host in trusted_proxies
    for entry in trusted_proxies:
        try:
            if address in ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False


def client_ip(request: Request, trusted_proxies: list[str] | None = None) -> str | None:
    """
    Resolve the submitting client's address.

    X-Forwarded-For is honoured only when the immediate peer is a trusted
    proxy; the right-most hop that is not itself a trusted proxy wins.
    """
    peer = request.client.host if request.client else None
    trusted = trusted_proxies or []
    if peer is None or not _is_trusted(peer, trusted):
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if not _is_trusted(hop, trusted):
            return hop
    return hops[0] if hops else peer


@router.post(
    "",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Duplicate request or existing account"},
        422: {"description": "Validation error"},
        429: {"model": ErrorResponse, "description": "Rate limit reached"},
    },
    summary="Submit a signup request",
    description="Submit email and name to request membership. "
    "An administrator reviews the request out-of-band.",
)
async def submit_signup_request(
    request_data: SignupRequest,
    request: Request,
    flow: SubmissionFlow = Depends(get_submission_flow),
    settings: Settings = Depends(get_settings),
) -> SignupResponse:
    try:
        signup_id = await flow.submit(
            email=request_data.email,
            name=request_data.name,
            surname=request_data.surname,
            ip_address=client_ip(request, settings.trusted_proxies),
            user_agent=request.headers.get("user-agent"),
        )
    except SignupError as exc:
        raise to_http_error(exc) from None
    return SignupResponse(
        message="Signup request submitted successfully. An administrator will review it.",
        signup_id=signup_id.value,
    )


@router.post(
    "/approve/{token}",
    response_model=ReviewResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        410: {"model": ErrorResponse, "description": "Approval token expired"},
    },
    summary="Approve a signup request",
)
async def approve_signup_request(
    token: str,
    admin_id: str = Depends(require_admin),
    flow: ApprovalFlow = Depends(get_approval_flow),
) -> ReviewResponse:
    try:
        await flow.approve(token, admin_id)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return ReviewResponse(message="Signup approved. The user will receive an activation link.")


@router.post(
    "/reject/{token}",
    response_model=ReviewResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Reject a signup request",
)
async def reject_signup_request(
    token: str,
    admin_id: str = Depends(require_admin),
    flow: RejectionFlow = Depends(get_rejection_flow),
) -> ReviewResponse:
    try:
        await flow.reject(token, admin_id)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return ReviewResponse(message="Signup rejected.")


@router.get("", response_model=SignupListResponse, summary="List signup requests by status")
async def list_signup_requests(
    status_filter: str = Query("pending", alias="status"),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
    _admin: str = Depends(require_admin),
    flow: QueryFlow = Depends(get_query_flow),
) -> SignupListResponse:
    try:
        page = await flow.page(status_filter, limit, offset)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return SignupListResponse(
        signups=[SignupSummary.from_record(r) for r in page.records],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/count", response_model=CountResponse, summary="Count signup requests by status")
async def count_signup_requests(
    status_filter: str = Query("pending", alias="status"),
    _admin: str = Depends(require_admin),
    flow: QueryFlow = Depends(get_query_flow),
) -> CountResponse:
    try:
        count = await flow.count_by_status(status_filter)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return CountResponse(count=count)


@router.post("/purge", response_model=PurgeResponse, summary="Delete records past retention")
async def purge_signup_requests(
    days: int | None = Query(None),
    _admin: str = Depends(require_admin),
    flow: RetentionFlow = Depends(get_retention_flow),
) -> PurgeResponse:
    try:
        deleted = await flow.purge(days)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return PurgeResponse(deleted=deleted)


@router.get("/{signup_id}", response_model=SignupSummary, summary="Fetch one signup request")
async def get_signup_request(
    signup_id: str,
    _admin: str = Depends(require_admin),
    flow: QueryFlow = Depends(get_query_flow),
) -> SignupSummary:
    try:
        record = await flow.get(signup_id)
    except SignupError as exc:
        raise to_http_error(exc) from None
    return SignupSummary.from_record(record)
