"""
기본 업적/리워드 카탈로그 시드 스크립트
이미 같은 이름이 있으면 건너뛰므로 여러 번 실행해도 안전
"""

import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gamiapi.database.session import get_db_context
from gamiapi.models.achievement import Achievement
from gamiapi.models.rewards import Reward

DEFAULT_ACHIEVEMENTS = [
    {
        "name": "Perfect Week",
        "description": "Maintain 100% attendance for a full week",
        "icon": "📅",
        "points": 100,
        "coins": 10,
        "category": "ATTENDANCE",
        "criteria": {"type": "attendance_streak", "threshold": 7},
    },
    {
        "name": "Perfect Month",
        "description": "Maintain 100% attendance for a full month",
        "icon": "🏆",
        "points": 50,
        "coins": 25,
        "category": "ATTENDANCE",
        "criteria": {"type": "attendance_streak", "threshold": 30},
    },
    {
        "name": "Work Logger",
        "description": "Submit work logs 5 times",
        "icon": "📝",
        "points": 80,
        "coins": 5,
        "category": "PRODUCTIVITY",
        "criteria": {"type": "tags_submitted", "threshold": 5},
    },
    {
        "name": "Focused Five",
        "description": "Stay above 80% productivity for 5 days in a row",
        "icon": "🎯",
        "points": 120,
        "coins": 10,
        "category": "PRODUCTIVITY",
        "criteria": {
            "type": "productivity_streak",
            "threshold": 5,
            "min_productivity": 80,
        },
    },
    {
        "name": "Well Rested",
        "description": "Take 10 breaks of a healthy length",
        "icon": "☕",
        "points": 60,
        "coins": 5,
        "category": "WELLBEING",
        "criteria": {"type": "breaks_compliant", "threshold": 10},
    },
    {
        "name": "Points Collector",
        "description": "Earn your first 500 points",
        "icon": "⭐",
        "points": 150,
        "coins": 15,
        "category": "MILESTONE",
        "criteria": {"type": "points", "threshold": 500},
    },
    {
        "name": "Level 5",
        "description": "Reach level 5",
        "icon": "🚀",
        "points": 100,
        "coins": 20,
        "category": "MILESTONE",
        "criteria": {"type": "level", "threshold": 5},
    },
]

DEFAULT_REWARDS = [
    # 포인트 리워드
    {"name": "Coffee Voucher", "description": "₹200 coffee shop voucher", "category": "VOUCHER", "points_cost": 150, "stock": 50},
    {"name": "Half Day Leave", "description": "Extra half day leave credit", "category": "TIME_OFF", "points_cost": 300, "stock": 20},
    {"name": "Lunch Treat", "description": "₹500 restaurant voucher", "category": "VOUCHER", "points_cost": 400, "stock": 30},
    {"name": "Tech Gadget", "description": "Bluetooth earbuds or tech accessories", "category": "PHYSICAL", "points_cost": 800, "stock": 10},
    {"name": "Full Day Leave", "description": "Extra full day leave credit", "category": "TIME_OFF", "points_cost": 600, "stock": 15},
    {"name": "Shopping Voucher", "description": "₹1000 shopping voucher", "category": "VOUCHER", "points_cost": 750, "stock": 25},
    {"name": "Team Outing", "description": "Team lunch or entertainment", "category": "EXPERIENCE", "points_cost": 1200, "stock": 5},
    {"name": "Work From Home", "description": "3 days work from home privilege", "category": "TIME_OFF", "points_cost": 500, "stock": 20},
    # 코인 리워드 (재고 무제한)
    {"name": "Paid Leave", "description": "One day of paid leave", "category": "COIN", "coins_cost": 50},
    {"name": "Remove Penalty", "description": "Clear one attendance penalty", "category": "COIN", "coins_cost": 30},
    {"name": "Remove Warning", "description": "Clear one warning", "category": "COIN", "coins_cost": 25},
    {"name": "Early Checkout", "description": "Leave one hour early", "category": "COIN", "coins_cost": 20},
    {"name": "Flexible Hours", "description": "Flexible hours for one day", "category": "COIN", "coins_cost": 40},
    {
        "name": "Cash Conversion",
        "description": "Convert coins to cash (minimum 100 coins)",
        "category": "COIN",
        "coins_cost": 100,
        "is_cash_conversion": True,
    },
]


def seed_achievements(db) -> int:
    """기본 업적 시드"""
    created = 0
    for data in DEFAULT_ACHIEVEMENTS:
        if db.query(Achievement).filter(Achievement.name == data["name"]).first():
            print(f"⏭️  이미 존재하는 업적: {data['name']}")
            continue
        db.add(Achievement(**data))
        created += 1
        print(f"✅ 업적 추가: {data['name']}")
    return created


def seed_rewards(db) -> int:
    """기본 리워드 시드"""
    created = 0
    for data in DEFAULT_REWARDS:
        if db.query(Reward).filter(Reward.name == data["name"]).first():
            print(f"⏭️  이미 존재하는 리워드: {data['name']}")
            continue
        db.add(Reward(**data))
        created += 1
        print(f"✅ 리워드 추가: {data['name']}")
    return created


def main():
    """시드 데이터 실행"""
    print("🌱 시드 데이터 생성을 시작합니다...")
    try:
        with get_db_context() as db:
            achievements = seed_achievements(db)
            rewards = seed_rewards(db)
    except Exception as e:
        print(f"❌ 시드 데이터 생성 실패: {str(e)}")
        raise

    print(f"🎉 완료: 업적 {achievements}개, 리워드 {rewards}개 추가")


if __name__ == "__main__":
    main()
