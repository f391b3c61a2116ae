"""
원장 조회 API 라우터

- GET /ledger/{employee_id}: 잔액 + 레벨 진행률 + 리더보드 순위
- GET /ledger/{employee_id}/transactions: 포인트/코인 거래 내역 (최신순)
- GET /ledger/{employee_id}/integrity: 잔액과 거래 합계 정합성 검증

인증은 상위 시스템이 처리하며 여기서는 직원 ID 를 경로로 받습니다.
"""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query

from gamiapi.containers import Container
from gamiapi.schemas.ledger import (
    LedgerDetailResponse,
    LedgerIntegrityResponse,
    TransactionHistoryResponse,
)
from gamiapi.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/{employee_id}", response_model=LedgerDetailResponse)
@inject
async def get_ledger(
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    ledger_service: LedgerService = Depends(Provide[Container.services.ledger_service]),
) -> LedgerDetailResponse:
    """직원 원장 조회 - 원장이 없으면 404"""
    return ledger_service.get_ledger(employee_id)


@router.get("/{employee_id}/transactions", response_model=TransactionHistoryResponse)
@inject
async def list_transactions(
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    limit: int = Query(50, ge=1, le=200, description="통화별 최대 건수"),
    ledger_service: LedgerService = Depends(Provide[Container.services.ledger_service]),
) -> TransactionHistoryResponse:
    return ledger_service.list_transactions(employee_id, limit=limit)


@router.get("/{employee_id}/integrity", response_model=LedgerIntegrityResponse)
@inject
async def verify_integrity(
    employee_id: int = Path(..., gt=0, description="직원 ID"),
    ledger_service: LedgerService = Depends(Provide[Container.services.ledger_service]),
) -> LedgerIntegrityResponse:
    return ledger_service.verify_integrity(employee_id)
