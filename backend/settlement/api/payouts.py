"""
Payouts API - payout reads, seller requests and admin lifecycle actions

Endpoints:
- GET  /api/v1/payouts                       - List payouts (filters: seller_id, status)
- GET  /api/v1/payouts/{payout_id}           - Payout with its earnings
- POST /api/v1/payouts/request               - Seller payout request
- POST /api/v1/payouts/run-batch             - Run the payout batch (requires API key)
- POST /api/v1/payouts/{payout_id}/approve   - Approve (requires API key)
- POST /api/v1/payouts/{payout_id}/reject    - Reject, releasing earnings (requires API key)
- POST /api/v1/payouts/{payout_id}/processing - Hand over to the provider (requires API key)
- POST /api/v1/payouts/{payout_id}/complete  - Mark disbursed (requires API key)
- POST /api/v1/payouts/{payout_id}/fail      - Mark failed, releasing earnings (requires API key)

Security:
- POST endpoints other than /request require X-Settlement-Key matching SETTLEMENT_API_KEY

Author: TM3
Date: 2026-03-02
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from settlement.api.deps import (
    get_payout_scheduler,
    get_payout_service,
    raise_http_error,
    verify_settlement_key,
)
from settlement.core.errors import SettlementError
from settlement.domain.payout import PayoutStatus
from settlement.services.payout_scheduler import PayoutScheduler
from settlement.services.payout_service import PayoutService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payouts", tags=["Payouts"])


# ============================================================================
# Request Models
# ============================================================================

class PayoutRequestBody(BaseModel):
    seller_id: str
    amount: Optional[int] = Field(None, ge=1, description="Upper bound in minor units; omit for full balance")
    method: Optional[str] = None
    account_details: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class ApproveBody(BaseModel):
    approved_by: Optional[str] = None


class RejectBody(BaseModel):
    reason: str = Field(..., min_length=1)
    rejected_by: Optional[str] = None


class FailBody(BaseModel):
    reason: str = Field(..., min_length=1)


# ============================================================================
# Reads
# ============================================================================

@router.get("")
def list_payouts(
    seller_id: Optional[str] = Query(None, description="Filter by seller"),
    status: Optional[PayoutStatus] = Query(None, description="Filter by payout status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    payouts: PayoutService = Depends(get_payout_service),
):
    try:
        items = payouts.list_payouts(seller_id=seller_id, status=status, limit=limit, offset=offset)
    except SettlementError as e:
        raise_http_error(e)

    return {
        "status": "success",
        "limit": limit,
        "offset": offset,
        "count": len(items),
        "data": [p.to_dict() for p in items]
    }


@router.get("/{payout_id}")
def get_payout(payout_id: str, payouts: PayoutService = Depends(get_payout_service)):
    """Payout detail including the earnings it pays out"""
    try:
        payout = payouts.get_payout(payout_id)
        earnings = payouts.get_payout_earnings(payout_id)
    except SettlementError as e:
        raise_http_error(e)

    data = payout.to_dict()
    data["earnings"] = [e.to_dict() for e in earnings]
    return {"status": "success", "data": data}


# ============================================================================
# Seller request / batch
# ============================================================================

@router.post("/request")
def request_payout(body: PayoutRequestBody, payouts: PayoutService = Depends(get_payout_service)):
    try:
        payout = payouts.request_payout(
            seller_id=body.seller_id,
            amount=body.amount,
            method=body.method,
            account_details=body.account_details,
            notes=body.notes,
        )
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}


@router.post("/run-batch", dependencies=[Depends(verify_settlement_key)])
def run_batch(scheduler: PayoutScheduler = Depends(get_payout_scheduler)):
    """Run one payout batch window now"""
    logger.info("Payout batch triggered via API")
    try:
        result = scheduler.run_batch()
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": result.to_dict()}


# ============================================================================
# Admin lifecycle
# ============================================================================

@router.post("/{payout_id}/approve", dependencies=[Depends(verify_settlement_key)])
def approve_payout(
    payout_id: str,
    body: Optional[ApproveBody] = None,
    payouts: PayoutService = Depends(get_payout_service),
):
    try:
        payout = payouts.approve(payout_id, approved_by=body.approved_by if body else None)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}


@router.post("/{payout_id}/reject", dependencies=[Depends(verify_settlement_key)])
def reject_payout(payout_id: str, body: RejectBody, payouts: PayoutService = Depends(get_payout_service)):
    try:
        payout = payouts.reject(payout_id, reason=body.reason, rejected_by=body.rejected_by)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}


@router.post("/{payout_id}/processing", dependencies=[Depends(verify_settlement_key)])
def mark_payout_processing(payout_id: str, payouts: PayoutService = Depends(get_payout_service)):
    try:
        payout = payouts.mark_processing(payout_id)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}


@router.post("/{payout_id}/complete", dependencies=[Depends(verify_settlement_key)])
def complete_payout(payout_id: str, payouts: PayoutService = Depends(get_payout_service)):
    try:
        payout = payouts.complete(payout_id)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}


@router.post("/{payout_id}/fail", dependencies=[Depends(verify_settlement_key)])
def fail_payout(payout_id: str, body: FailBody, payouts: PayoutService = Depends(get_payout_service)):
    try:
        payout = payouts.fail(payout_id, reason=body.reason)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": payout.to_dict()}
