"""
원장 저장소 - 직원별 잔액과 두 개의 append-only 거래 로그

모든 쓰기 메서드는 호출자의 트랜잭션 안에서 flush 만 수행합니다.
같은 직원에 대한 동시 쓰기는 원장 행의 SELECT ... FOR UPDATE 로 직렬화됩니다.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, asc, desc, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gamiapi.core.exceptions import NotFoundError
from gamiapi.models.employee import Employee
from gamiapi.models.ledger import CoinTransaction, EmployeeLedger, PointTransaction
from gamiapi.repositories.base import BaseRepository
from gamiapi.schemas.ledger import (
    CoinTransactionResponse,
    LeaderboardEntry,
    LedgerIntegrityResponse,
    LedgerResponse,
    PointTransactionResponse,
)
from gamiapi.services.progression import (
    DEFAULT_RANK,
    LedgerSnapshot,
    plan_balance_change,
)


@dataclass
class AppliedDelta:
    ledger: EmployeeLedger
    point_transaction: Optional[PointTransaction] = None
    coin_transaction: Optional[CoinTransaction] = None


class LedgerRepository(BaseRepository[EmployeeLedger, LedgerResponse]):
    """직원 원장 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(EmployeeLedger, LedgerResponse, db)

    def _ledger_query(self, employee_id: int, for_update: bool = False):
        query = self.db.query(EmployeeLedger).filter(
            EmployeeLedger.employee_id == employee_id
        )
        if for_update:
            query = query.with_for_update()
        return query

    def get(self, employee_id: int, for_update: bool = False) -> Optional[EmployeeLedger]:
        return self._ledger_query(employee_id, for_update).first()

    def get_or_create(self, employee_id: int, for_update: bool = False) -> EmployeeLedger:
        """원장 조회, 없으면 0 잔액/레벨 1/Beginner 로 생성

        동시에 두 요청이 생성을 시도하면 employee_id 유니크 제약으로 한쪽이
        실패하며, 실패한 쪽은 SAVEPOINT 만 되돌린 뒤 먼저 생성된 행을 다시 읽습니다.
        """
        ledger = self.get(employee_id, for_update)
        if ledger is not None:
            return ledger

        if self.db.get(Employee, employee_id) is None:
            raise NotFoundError(
                f"Employee not found: {employee_id}",
                details={"employee_id": employee_id},
            )

        ledger = EmployeeLedger(
            employee_id=employee_id,
            points=0,
            coins=0,
            experience=0,
            level=1,
            rank=DEFAULT_RANK,
            lifetime_points=0,
            lifetime_coins=0,
        )
        try:
            with self.db.begin_nested():
                self.db.add(ledger)
                self.db.flush()
        except IntegrityError:
            ledger = self._ledger_query(employee_id, for_update).one()
        return ledger

    def write_snapshot(
        self, ledger: EmployeeLedger, snapshot: LedgerSnapshot
    ) -> EmployeeLedger:
        ledger.points = snapshot.points
        ledger.coins = snapshot.coins
        ledger.experience = snapshot.experience
        ledger.level = snapshot.level
        ledger.rank = snapshot.rank
        ledger.lifetime_points = snapshot.lifetime_points
        ledger.lifetime_coins = snapshot.lifetime_coins
        self.db.flush()
        return ledger

    def record_point_transaction(
        self,
        employee_id: int,
        amount: int,
        transaction_type: str,
        description: str,
        reference: Optional[str] = None,
        requested_amount: Optional[int] = None,
    ) -> PointTransaction:
        transaction = PointTransaction(
            employee_id=employee_id,
            amount=amount,
            requested_amount=amount if requested_amount is None else requested_amount,
            type=transaction_type,
            description=description,
            reference=reference,
        )
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def record_coin_transaction(
        self,
        employee_id: int,
        amount: int,
        transaction_type: str,
        description: str,
        reference: Optional[str] = None,
        requested_amount: Optional[int] = None,
    ) -> CoinTransaction:
        transaction = CoinTransaction(
            employee_id=employee_id,
            amount=amount,
            requested_amount=amount if requested_amount is None else requested_amount,
            type=transaction_type,
            description=description,
            reference=reference,
        )
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def apply_delta(
        self,
        employee_id: int,
        points_delta: int = 0,
        coins_delta: int = 0,
        point_type: Optional[str] = None,
        coin_type: Optional[str] = None,
        description: str = "",
        reference: Optional[str] = None,
    ) -> AppliedDelta:
        """경험치와 무관한 직접 증감 + 대응하는 거래 행 기록

        잔액은 0 에서 하한이 걸리며, 거래 행의 amount 는 실제 반영량입니다.
        """
        ledger = self.get_or_create(employee_id, for_update=True)
        plan = plan_balance_change(
            LedgerSnapshot.from_ledger(ledger),
            points_delta=points_delta,
            coins_delta=coins_delta,
            point_type=point_type,
            coin_type=coin_type,
        )
        self.write_snapshot(ledger, plan.snapshot)

        result = AppliedDelta(ledger=ledger)
        if points_delta:
            result.point_transaction = self.record_point_transaction(
                employee_id,
                plan.points_applied,
                point_type or "earned",
                description,
                reference,
                requested_amount=points_delta,
            )
        if coins_delta:
            result.coin_transaction = self.record_coin_transaction(
                employee_id,
                plan.coins_applied,
                coin_type or "earned",
                description,
                reference,
                requested_amount=coins_delta,
            )
        return result

    def list_point_transactions(
        self, employee_id: int, limit: int = 50, offset: int = 0
    ) -> List[PointTransactionResponse]:
        rows = (
            self.db.query(PointTransaction)
            .filter(PointTransaction.employee_id == employee_id)
            .order_by(desc(PointTransaction.created_at), desc(PointTransaction.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [PointTransactionResponse.model_validate(row) for row in rows]

    def list_coin_transactions(
        self, employee_id: int, limit: int = 50, offset: int = 0
    ) -> List[CoinTransactionResponse]:
        rows = (
            self.db.query(CoinTransaction)
            .filter(CoinTransaction.employee_id == employee_id)
            .order_by(desc(CoinTransaction.created_at), desc(CoinTransaction.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [CoinTransactionResponse.model_validate(row) for row in rows]

    def _totals(self, model, employee_id: int) -> Tuple[int, int]:
        total, count = (
            self.db.query(func.coalesce(func.sum(model.amount), 0), func.count(model.id))
            .filter(model.employee_id == employee_id)
            .one()
        )
        return int(total), int(count)

    def verify_integrity(self, employee_id: int) -> LedgerIntegrityResponse:
        """잔액 == 거래 amount 합계 인지 검증"""
        ledger = self.get(employee_id)
        recorded_points = ledger.points if ledger else 0
        recorded_coins = ledger.coins if ledger else 0

        point_sum, point_count = self._totals(PointTransaction, employee_id)
        coin_sum, coin_count = self._totals(CoinTransaction, employee_id)

        consistent = point_sum == recorded_points and coin_sum == recorded_coins
        return LedgerIntegrityResponse(
            status="OK" if consistent else "MISMATCH",
            employee_id=employee_id,
            recorded_points=recorded_points,
            calculated_points=point_sum,
            recorded_coins=recorded_coins,
            calculated_coins=coin_sum,
            point_transaction_count=point_count,
            coin_transaction_count=coin_count,
            verified_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        )

    def count_ledgers(self) -> int:
        return self.db.query(func.count(EmployeeLedger.id)).scalar() or 0

    def leaderboard(self, limit: int = 10, offset: int = 0) -> List[LeaderboardEntry]:
        """포인트 내림차순, 동점이면 employee_id 오름차순"""
        rows = (
            self.db.query(EmployeeLedger, Employee.name)
            .outerjoin(Employee, Employee.id == EmployeeLedger.employee_id)
            .order_by(desc(EmployeeLedger.points), asc(EmployeeLedger.employee_id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [
            LeaderboardEntry(
                position=offset + index + 1,
                employee_id=ledger.employee_id,
                name=name,
                points=ledger.points,
                level=ledger.level,
                rank=ledger.rank,
            )
            for index, (ledger, name) in enumerate(rows)
        ]

    def rank_of(self, employee_id: int) -> int:
        """리더보드 순위 (1부터) - 원장이 없으면 0"""
        ledger = self.get(employee_id)
        if ledger is None:
            return 0
        ahead = (
            self.db.query(func.count(EmployeeLedger.id))
            .filter(
                or_(
                    EmployeeLedger.points > ledger.points,
                    and_(
                        EmployeeLedger.points == ledger.points,
                        EmployeeLedger.employee_id < ledger.employee_id,
                    ),
                )
            )
            .scalar()
        )
        return (ahead or 0) + 1
