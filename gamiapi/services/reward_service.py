import logging
from typing import Optional, Tuple, Union

from sqlalchemy.orm import Session

from gamiapi.config import Settings, settings as default_settings
from gamiapi.core.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from gamiapi.models.rewards import RedemptionStatusEnum, Reward
from gamiapi.repositories.ledger_repository import LedgerRepository
from gamiapi.repositories.rewards_repository import RewardsRepository
from gamiapi.schemas.achievements import DeleteResultResponse
from gamiapi.schemas.rewards import (
    CashConversionResponse,
    RedemptionListResponse,
    RedemptionResponse,
    RedemptionResult,
    RewardCatalogItem,
    RewardCatalogResponse,
    RewardCreateRequest,
    RewardResponse,
    RewardUpdateRequest,
)
from gamiapi.services.unit_of_work import transactional

logger = logging.getLogger(__name__)

REDEMPTION_CONFLICT_MESSAGE = "Concurrent redemption conflict, please retry"


class RewardService:
    """리워드 카탈로그 / 교환 비즈니스 로직"""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.rewards_repo = RewardsRepository(db)
        self.ledger_repo = LedgerRepository(db)

    def _get_reward_or_404(self, reward_id: int) -> Reward:
        reward = self.rewards_repo.get_model(reward_id)
        if reward is None:
            raise NotFoundError(
                f"Reward not found: {reward_id}", details={"reward_id": reward_id}
            )
        return reward

    def _redemption_cost(
        self, reward: Reward, coin_amount: Optional[int]
    ) -> Tuple[int, int]:
        """(points_cost, coins_cost) - 현금 전환 리워드는 요청한 코인 수량 사용"""
        if not reward.is_cash_conversion:
            if coin_amount is not None:
                raise ValidationError(
                    "coin_amount is only accepted for cash conversion rewards"
                )
            return reward.points_cost or 0, reward.coins_cost or 0

        coins = coin_amount if coin_amount is not None else reward.coins_cost or 0
        minimum = self.settings.CASH_OUT_MIN_COINS
        if isinstance(coins, bool) or not isinstance(coins, int) or coins < minimum:
            raise ValidationError(
                f"Minimum {minimum} coins required for cash conversion",
                details={"coin_amount": coin_amount, "minimum": minimum},
            )
        return 0, coins

    def redeem(
        self, employee_id: int, reward_id: int, coin_amount: Optional[int] = None
    ) -> RedemptionResult:
        """리워드 교환

        재고 차감, 교환 기록, 잔액 차감, 거래 행 기록이 하나의 트랜잭션에서 처리되며
        어느 하나라도 실패하면 아무것도 남지 않는다.

        Raises:
            NotFoundError: 리워드/직원 없음
            ValidationError: 비활성 리워드, 잘못된 현금 전환 수량
            OutOfStockError: 재고 소진 (동시 교환 경합 포함)
            InsufficientBalanceError: 잔액 부족
            ConflictError: 동시 쓰기 충돌 (재시도 가능)
        """
        with transactional(self.db, conflict_message=REDEMPTION_CONFLICT_MESSAGE):
            reward = self._get_reward_or_404(reward_id)
            if not reward.is_active:
                raise ValidationError(
                    f"Reward is not active: {reward_id}",
                    details={"reward_id": reward_id},
                )
            points_cost, coins_cost = self._redemption_cost(reward, coin_amount)

            ledger = self.ledger_repo.get_or_create(employee_id, for_update=True)

            if reward.stock is not None and reward.stock <= 0:
                raise OutOfStockError(
                    f"Reward out of stock: {reward.name}",
                    details={"reward_id": reward_id},
                )
            if ledger.points < points_cost or ledger.coins < coins_cost:
                currency = "points" if points_cost else "coins"
                raise InsufficientBalanceError(
                    f"Insufficient {currency}. Required: {points_cost or coins_cost}, "
                    f"Available: {ledger.points if points_cost else ledger.coins}",
                    details={
                        "required_points": points_cost,
                        "required_coins": coins_cost,
                        "points": ledger.points,
                        "coins": ledger.coins,
                    },
                )

            # 조건부 UPDATE - 동시에 마지막 재고를 가져간 요청이 있으면 0건 갱신
            if not self.rewards_repo.decrement_stock(reward.id):
                raise OutOfStockError(
                    f"Reward out of stock: {reward.name}",
                    details={"reward_id": reward_id},
                )

            redemption = self.rewards_repo.create_redemption(
                employee_id,
                reward.id,
                points_spent=points_cost,
                coins_spent=coins_cost,
            )
            self.ledger_repo.apply_delta(
                employee_id,
                points_delta=-points_cost,
                coins_delta=-coins_cost,
                point_type="spent",
                coin_type="converted" if reward.is_cash_conversion else "spent",
                description=f"Redeemed: {reward.name}",
                reference=f"redemption:{redemption.id}",
            )

            result = RedemptionResult(
                redemption=RedemptionResponse.model_validate(redemption),
                points=ledger.points,
                coins=ledger.coins,
                remaining_stock=reward.stock,
            )

        logger.info(
            f"Employee {employee_id} redeemed reward {reward_id} "
            f"(points={points_cost}, coins={coins_cost}), redemption={redemption.id}"
        )
        return result

    def update_redemption_status(
        self,
        redemption_id: int,
        status: Union[str, RedemptionStatusEnum],
        notes: Optional[str] = None,
    ) -> RedemptionResponse:
        """교환 상태 변경 - 거절되어도 차감된 잔액은 환불하지 않음"""
        try:
            new_status = RedemptionStatusEnum(status)
        except ValueError:
            raise ValidationError(
                f"Unknown redemption status: {status}",
                details={"allowed": [s.value for s in RedemptionStatusEnum]},
            )

        with transactional(self.db):
            updated = self.rewards_repo.update_redemption_status(
                redemption_id, new_status.value, notes
            )
            if updated is None:
                raise NotFoundError(
                    f"Redemption not found: {redemption_id}",
                    details={"redemption_id": redemption_id},
                )

        logger.info(f"Redemption {redemption_id} status -> {new_status.value}")
        return updated

    def list_redemptions(
        self,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> RedemptionListResponse:
        return RedemptionListResponse(
            redemptions=self.rewards_repo.list_redemptions(
                employee_id=employee_id, status=status, limit=limit, offset=offset
            ),
            total_count=self.rewards_repo.count_redemptions(
                employee_id=employee_id, status=status
            ),
        )

    def list_catalog(
        self, employee_id: Optional[int] = None, active_only: bool = True
    ) -> RewardCatalogResponse:
        """리워드 목록 + 직원 잔액 기준 교환 가능 여부"""
        ledger = self.ledger_repo.get(employee_id) if employee_id is not None else None
        points = ledger.points if ledger else 0
        coins = ledger.coins if ledger else 0

        items = []
        for reward in self.rewards_repo.list_rewards(active_only=active_only):
            in_stock = reward.stock is None or reward.stock > 0
            if reward.points_cost is not None:
                affordable = points >= reward.points_cost
            else:
                minimum = reward.coins_cost or 0
                if reward.is_cash_conversion:
                    minimum = max(minimum, self.settings.CASH_OUT_MIN_COINS)
                affordable = coins >= minimum
            items.append(
                RewardCatalogItem(
                    **RewardResponse.model_validate(reward).model_dump(),
                    in_stock=in_stock,
                    affordable=affordable and in_stock and reward.is_active,
                )
            )

        return RewardCatalogResponse(
            employee_id=employee_id,
            points=points,
            coins=coins,
            rewards=items,
            total_count=len(items),
        )

    def get_reward(self, reward_id: int) -> RewardResponse:
        return RewardResponse.model_validate(self._get_reward_or_404(reward_id))

    def create_reward(self, request: RewardCreateRequest) -> RewardResponse:
        with transactional(self.db):
            created = self.rewards_repo.create(**request.model_dump())
        logger.info(f"Created reward {created.id} ({created.name})")
        return created

    def update_reward(
        self, reward_id: int, request: RewardUpdateRequest
    ) -> RewardResponse:
        changes = request.model_dump(exclude_unset=True)
        with transactional(self.db):
            reward = self._get_reward_or_404(reward_id)
            points_cost = changes.get("points_cost", reward.points_cost)
            coins_cost = changes.get("coins_cost", reward.coins_cost)
            if (points_cost is None) == (coins_cost is None):
                raise ValidationError(
                    "Exactly one of points_cost or coins_cost must be set"
                )
            updated = self.rewards_repo.update(reward_id, **changes)

        logger.info(f"Updated reward {reward_id}: {sorted(changes)}")
        return updated

    def delete_reward(self, reward_id: int) -> DeleteResultResponse:
        """교환 기록이 있는 리워드는 삭제 대신 비활성화"""
        with transactional(self.db):
            self._get_reward_or_404(reward_id)
            if self.rewards_repo.has_redemptions(reward_id):
                self.rewards_repo.update(reward_id, is_active=False)
                message = f"Reward {reward_id} has redemptions and was deactivated"
            else:
                self.rewards_repo.delete(reward_id)
                message = f"Reward {reward_id} deleted"

        logger.info(message)
        return DeleteResultResponse(success=True, message=message)

    def convert_coins_to_cash(self, employee_id: int, coins: int) -> CashConversionResponse:
        """코인 현금 전환 기록 - 실제 송금은 외부 정산 시스템 담당

        converted 거래는 lifetime_coins 에 영향을 주지 않는다.
        """
        minimum = self.settings.CASH_OUT_MIN_COINS
        if isinstance(coins, bool) or not isinstance(coins, int) or coins < minimum:
            raise ValidationError(
                f"Minimum {minimum} coins required for cash conversion",
                details={"coins": coins, "minimum": minimum},
            )
        cash_value = coins * self.settings.COIN_TO_CASH_RATE

        with transactional(self.db):
            ledger = self.ledger_repo.get_or_create(employee_id, for_update=True)
            if ledger.coins < coins:
                raise InsufficientBalanceError(
                    f"Insufficient coins. Required: {coins}, Available: {ledger.coins}",
                    details={"required_coins": coins, "coins": ledger.coins},
                )
            applied = self.ledger_repo.apply_delta(
                employee_id,
                coins_delta=-coins,
                coin_type="converted",
                description=f"Converted {coins} coins to cash ({cash_value})",
            )
            response = CashConversionResponse(
                employee_id=employee_id,
                coins_converted=coins,
                cash_value=cash_value,
                coins_remaining=applied.ledger.coins,
                transaction_id=applied.coin_transaction.id,
            )

        logger.info(
            f"Employee {employee_id} converted {coins} coins to cash value {cash_value}"
        )
        return response
