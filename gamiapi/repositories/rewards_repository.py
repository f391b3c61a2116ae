from typing import List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from gamiapi.models.rewards import EmployeeReward, RedemptionStatusEnum, Reward
from gamiapi.repositories.base import BaseRepository
from gamiapi.schemas.rewards import RedemptionResponse, RewardResponse


class RewardsRepository(BaseRepository[Reward, RewardResponse]):
    """리워드 카탈로그 및 교환 기록 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(Reward, RewardResponse, db)

    def list_rewards(self, active_only: bool = True) -> List[Reward]:
        query = self.db.query(Reward)
        if active_only:
            query = query.filter(Reward.is_active.is_(True))
        return query.order_by(asc(Reward.category), asc(Reward.id)).all()

    def decrement_stock(self, reward_id: int) -> bool:
        """재고 1 차감 - 재고가 남아 있을 때만 성공

        조건부 UPDATE 한 문장으로 처리하므로 동시 교환에서도 음수가 되지 않는다.
        무제한 재고(NULL)는 항상 성공.
        """
        reward = self.get_model(reward_id)
        if reward is None:
            return False
        if reward.stock is None:
            return True

        updated_count = (
            self.db.query(Reward)
            .filter(Reward.id == reward_id, Reward.stock > 0)
            .update({Reward.stock: Reward.stock - 1}, synchronize_session=False)
        )
        self.db.flush()
        self.db.refresh(reward)
        return updated_count == 1

    def create_redemption(
        self,
        employee_id: int,
        reward_id: int,
        points_spent: int = 0,
        coins_spent: int = 0,
    ) -> EmployeeReward:
        redemption = EmployeeReward(
            employee_id=employee_id,
            reward_id=reward_id,
            points_spent=points_spent,
            coins_spent=coins_spent,
            status=RedemptionStatusEnum.PENDING.value,
        )
        self.db.add(redemption)
        self.db.flush()
        self.db.refresh(redemption)
        return redemption

    def get_redemption(self, redemption_id: int) -> Optional[EmployeeReward]:
        return self.db.get(EmployeeReward, redemption_id)

    def update_redemption_status(
        self, redemption_id: int, status: str, notes: Optional[str] = None
    ) -> Optional[RedemptionResponse]:
        redemption = self.get_redemption(redemption_id)
        if redemption is None:
            return None
        redemption.status = status
        if notes is not None:
            redemption.notes = notes
        self.db.flush()
        self.db.refresh(redemption)
        return RedemptionResponse.model_validate(redemption)

    def list_redemptions(
        self,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[RedemptionResponse]:
        query = self.db.query(EmployeeReward)
        if employee_id is not None:
            query = query.filter(EmployeeReward.employee_id == employee_id)
        if status is not None:
            query = query.filter(EmployeeReward.status == status)
        rows = (
            query.order_by(desc(EmployeeReward.redeemed_at), desc(EmployeeReward.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [RedemptionResponse.model_validate(row) for row in rows]

    def count_redemptions(
        self, employee_id: Optional[int] = None, status: Optional[str] = None
    ) -> int:
        query = self.db.query(EmployeeReward)
        if employee_id is not None:
            query = query.filter(EmployeeReward.employee_id == employee_id)
        if status is not None:
            query = query.filter(EmployeeReward.status == status)
        return query.count()

    def has_redemptions(self, reward_id: int) -> bool:
        return (
            self.db.query(EmployeeReward.id)
            .filter(EmployeeReward.reward_id == reward_id)
            .first()
            is not None
        )
