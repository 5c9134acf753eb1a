"""
Earnings API - seller ledger reads and ledger maintenance

Endpoints:
- GET  /api/v1/earnings/sellers/{seller_id}          - Seller ledger entries
- GET  /api/v1/earnings/sellers/{seller_id}/summary  - Seller balances
- GET  /api/v1/earnings/{record_id}                  - One ledger entry
- POST /api/v1/earnings/{record_id}/status           - Move an entry forward (requires API key)
- POST /api/v1/earnings/release-matured              - Holding-period release job (requires API key)

Author: TM3
Date: 2026-03-02
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from settlement.api.deps import get_ledger_service, raise_http_error, verify_settlement_key
from settlement.core.errors import SettlementError
from settlement.domain.earnings import EarningsStatus
from settlement.services.earnings_ledger_service import EarningsLedgerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/earnings", tags=["Earnings"])


class StatusUpdateRequest(BaseModel):
    status: EarningsStatus


@router.get("/sellers/{seller_id}")
def get_seller_earnings(
    seller_id: str,
    status: Optional[EarningsStatus] = Query(None, description="Filter by ledger status"),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    ledger: EarningsLedgerService = Depends(get_ledger_service),
):
    """List a seller's earnings, newest first"""
    try:
        records = ledger.list_seller_earnings(seller_id, status=status, limit=limit, offset=offset)
    except SettlementError as e:
        raise_http_error(e)

    return {
        "status": "success",
        "limit": limit,
        "offset": offset,
        "count": len(records),
        "data": [r.to_dict() for r in records]
    }


@router.get("/sellers/{seller_id}/summary")
def get_seller_summary(
    seller_id: str,
    ledger: EarningsLedgerService = Depends(get_ledger_service),
):
    """Available / pending / paid balances for a seller"""
    try:
        summary = ledger.get_seller_summary(seller_id)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": summary.model_dump()}


@router.post("/release-matured", dependencies=[Depends(verify_settlement_key)])
def release_matured(ledger: EarningsLedgerService = Depends(get_ledger_service)):
    """Flip pending entries past their holding period to available"""
    try:
        released = ledger.release_matured()
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": {"released": released}}


@router.get("/{record_id}")
def get_earnings_record(
    record_id: str,
    ledger: EarningsLedgerService = Depends(get_ledger_service),
):
    try:
        record = ledger.get_record(record_id)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": record.to_dict()}


@router.post("/{record_id}/status", dependencies=[Depends(verify_settlement_key)])
def update_earnings_status(
    record_id: str,
    body: StatusUpdateRequest,
    ledger: EarningsLedgerService = Depends(get_ledger_service),
):
    """Forward-only status change (e.g. early release on delivery)"""
    try:
        record = ledger.update_status(record_id, body.status)
    except SettlementError as e:
        raise_http_error(e)

    return {"status": "success", "data": record.to_dict()}
