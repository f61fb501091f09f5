"""
Report API Routes

Anonymous submission and status lookup, plus the admin review endpoints.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from whistle_service.api.dependencies import get_report_manager, require_admin
from whistle_service.core.exceptions import ReportNotFoundError, ValidationError
from whistle_service.core.report_manager import ReportManager
from whistle_service.models import (
    CreateReportRequest,
    CreateReportResponse,
    Report,
    ReportListResponse,
    ReportStatus,
    ReportStatusResponse,
    UpdateReportRequest,
)

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=CreateReportResponse,
    status_code=201,
    summary="Submit Report",
    description="""
Submit an anonymous report, either as plaintext or as a client-side encrypted envelope.

**Workflow**:
1. Video metadata, if present, is checked against the attachment limits
2. Encrypted submissions must carry `encrypted_message` and `encrypted_category`
3. Plain submissions must carry a non-empty `message` and a known `category`
4. Severity `urgent` flags the report immediately
5. The report is stored and all live admin viewers are notified

**Response**: only the id, an acknowledgement and the creation time.
The stored report is never echoed back to the anonymous caller.

**Authorization**: None (anonymous)
    """,
    responses={
        201: {"description": "Report accepted"},
        400: {"description": "Submission rejected"}
    }
)
async def create_report(
    request: CreateReportRequest,
    manager: ReportManager = Depends(get_report_manager)
) -> CreateReportResponse:
    """Submit an anonymous report"""
    try:
        report = await manager.create_report(request)
    except ValidationError as e:
        logger.info(f"Report submission rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return CreateReportResponse(id=report.id, created_at=report.created_at)


@router.get(
    "/{report_id}/status",
    response_model=ReportStatusResponse,
    summary="Get Report Status",
    description="""
Anonymous status lookup for a submitted report.

Returns only `id`, `status`, `created_at`, `admin_response` and
`admin_response_at`. Report content and envelopes are never included.

**Authorization**: None (anonymous)
    """,
    responses={
        200: {"description": "Status returned"},
        404: {"description": "Report not found"}
    }
)
async def get_report_status(
    report_id: str,
    manager: ReportManager = Depends(get_report_manager)
) -> ReportStatusResponse:
    """Get report status"""
    try:
        return await manager.get_status(report_id)
    except ReportNotFoundError:
        raise HTTPException(status_code=404, detail="Report not found")


@router.get(
    "",
    response_model=ReportListResponse,
    summary="List Reports",
    description="""
List all reports newest first, including encrypted envelopes, optionally filtered by status.

**Authorization**: Admin (`auth` cookie or `Authorization: Bearer <token>`)
    """,
    responses={
        200: {"description": "Report list returned"},
        401: {"description": "Authentication required"}
    }
)
async def list_reports(
    status: Optional[ReportStatus] = Query(None, description="Filter by status"),
    admin: Dict[str, Any] = Depends(require_admin),
    manager: ReportManager = Depends(get_report_manager)
) -> ReportListResponse:
    """List reports"""
    reports, total = await manager.list_reports(status)
    return ReportListResponse(reports=reports, total=total)


@router.put(
    "/{report_id}",
    response_model=Report,
    summary="Update Report",
    description="""
Update a report's status and/or admin response. Setting `admin_response`
also records `admin_response_at`, which the anonymous status page shows.

**Authorization**: Admin
    """,
    responses={
        200: {"description": "Report updated"},
        401: {"description": "Authentication required"},
        404: {"description": "Report not found"}
    }
)
async def update_report(
    report_id: str,
    request: UpdateReportRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    manager: ReportManager = Depends(get_report_manager)
) -> Report:
    """Update report"""
    try:
        report = await manager.update_report(
            report_id,
            status=request.status,
            admin_response=request.admin_response
        )
    except ReportNotFoundError:
        raise HTTPException(status_code=404, detail="Report not found")

    logger.info(f"Admin {admin.get('sub')} updated report {report_id}")
    return report
