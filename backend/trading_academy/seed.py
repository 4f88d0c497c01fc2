"""
Catalog seed script.
Creates the three courses and three mentorship programs offered at launch.

SAFE TO RE-RUN:
- Row ids are derived from the catalog name (UUIDv5), so the same entry
  always maps to the same primary key
- Inserts use ON CONFLICT DO NOTHING, so existing rows (including edited
  prices or deactivated entries) are left untouched

Usage:
    cd backend
    python -m trading_academy.seed
"""

import logging
import uuid
from decimal import Decimal
from typing import Dict

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from trading_academy import models


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATALOG_NAMESPACE = uuid.UUID("6f1c1f0e-5b7a-4d0c-9a55-2f7d8a3c4b10")


def catalog_id(kind: str, name: str) -> uuid.UUID:
    """Stable id for a catalog entry, e.g. catalog_id("course", "Elite Package")."""
    return uuid.uuid5(CATALOG_NAMESPACE, f"{kind}:{name}")


COURSES = [
    {
        "course_name": "Beginner Package",
        "description": "Perfect for new traders looking to build a solid foundation across all markets",
        "price": Decimal("997.00"),
        "original_price": Decimal("1297.00"),
        "duration_weeks": 8,
        "level": models.CourseLevelEnum.beginner,
        "features": [
            "Forex, Futures & Crypto Fundamentals",
            "50+ Video Lessons (20+ Hours)",
            "Trading Psychology Masterclass",
            "Risk Management Framework",
            "Basic Technical Analysis",
            "Trading Plan Templates",
            "Private Community Access",
            "Email Support",
            "Certificate of Completion",
        ],
        "outcomes": [
            "Understand market mechanics",
            "Execute your first profitable trades",
            "Develop proper risk management",
            "Build trading confidence",
        ],
    },
    {
        "course_name": "Advanced Package",
        "description": "For experienced traders ready to take their performance to the next level",
        "price": Decimal("1997.00"),
        "original_price": Decimal("2497.00"),
        "duration_weeks": 12,
        "level": models.CourseLevelEnum.advanced,
        "features": [
            "Everything in Beginner Package",
            "Advanced Technical Analysis",
            "3 Proprietary Trading Strategies",
            "Market Structure & Order Flow",
            "Multi-Timeframe Analysis",
            "Advanced Risk Management",
            "Live Trading Sessions (4 per month)",
            "Weekly Group Q&A Calls",
            "Trading Journal & Analytics Tools",
            "Priority Support",
        ],
        "outcomes": [
            "Master advanced trading strategies",
            "Achieve consistent profitability",
            "Trade multiple markets confidently",
            "Develop institutional-level skills",
        ],
    },
    {
        "course_name": "Elite Package",
        "description": "The ultimate trading education for serious traders seeking mastery",
        "price": Decimal("2997.00"),
        "original_price": Decimal("3997.00"),
        "duration_weeks": 16,
        "level": models.CourseLevelEnum.elite,
        "features": [
            "Everything in Advanced Package",
            "5 Professional Trading Strategies",
            "Algorithmic Trading Introduction",
            "Portfolio Management Techniques",
            "Institutional Trading Insights",
            "Custom Strategy Development",
            "Daily Live Trading Room Access",
            "Monthly 1-on-1 Coaching Call",
            "Professional Trading Tools",
            "Lifetime Course Updates",
            "VIP Support & Direct Access",
        ],
        "outcomes": [
            "Trade like a professional",
            "Develop your own strategies",
            "Manage large portfolios",
            "Achieve financial independence",
        ],
    },
]

MENTORSHIP_PROGRAMS = [
    {
        "program_name": "Monthly Mentorship",
        "description": "Perfect for traders who want regular guidance and support",
        "price": Decimal("499.00"),
        "billing_period": models.BillingPeriodEnum.monthly,
        "features": [
            "2 x 1-on-1 Sessions per Month (60 min each)",
            "Weekly Group Coaching Calls",
            "Trading Room Access (5 days/week)",
            "Real-time Trade Alerts",
            "Performance Review & Feedback",
            "Direct Chat Access",
            "Trading Plan Optimization",
            "Risk Management Coaching",
        ],
        "benefits": [
            "Personalized strategy development",
            "Regular performance tracking",
            "Immediate support when needed",
            "Community of serious traders",
        ],
    },
    {
        "program_name": "Quarterly Mentorship",
        "description": "Intensive 3-month program for accelerated growth",
        "price": Decimal("1299.00"),
        "billing_period": models.BillingPeriodEnum.quarterly,
        "features": [
            "8 x 1-on-1 Sessions per Quarter (60 min each)",
            "Daily Group Coaching Calls",
            "VIP Trading Room Access",
            "Priority Trade Alerts",
            "Weekly Performance Analysis",
            "24/7 Chat Support",
            "Custom Strategy Development",
            "Portfolio Management Guidance",
            "Monthly Goal Setting Sessions",
        ],
        "benefits": [
            "Accelerated learning curve",
            "Comprehensive skill development",
            "Consistent accountability",
            "Advanced strategy implementation",
        ],
    },
    {
        "program_name": "Annual Mentorship",
        "description": "Complete transformation program for serious traders",
        "price": Decimal("3997.00"),
        "billing_period": models.BillingPeriodEnum.annually,
        "features": [
            "36 x 1-on-1 Sessions per Year (60 min each)",
            "Daily Group Coaching Calls",
            "Elite Trading Room Access",
            "Instant Trade Alerts",
            "Weekly Performance Deep Dives",
            "Direct Phone/Text Access",
            "Proprietary Strategy Development",
            "Advanced Portfolio Management",
            "Quarterly Business Reviews",
            "Trading Psychology Coaching",
            "Lifetime Alumni Network Access",
        ],
        "benefits": [
            "Complete trading mastery",
            "Professional-level skills",
            "Long-term success planning",
            "Exclusive networking opportunities",
        ],
    },
]


# =============================================================================
# SEEDING
# =============================================================================

def _insert_ignore(db: Session, model, values: dict) -> int:
    """INSERT ... ON CONFLICT (id) DO NOTHING; returns rows inserted (0 or 1)."""
    dialect = db.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=["id"])
    return db.execute(stmt).rowcount


def seed_catalog(db: Session) -> Dict[str, int]:
    """Insert any missing catalog rows and commit.

    Returns:
        Number of newly inserted rows per table.
    """
    inserted = {"courses": 0, "mentorship": 0}
    try:
        for course in COURSES:
            values = {"id": catalog_id("course", course["course_name"]), **course}
            inserted["courses"] += _insert_ignore(db, models.Course, values)

        for program in MENTORSHIP_PROGRAMS:
            values = {"id": catalog_id("mentorship", program["program_name"]), **program}
            inserted["mentorship"] += _insert_ignore(db, models.MentorshipProgram, values)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "[SEED] Catalog seeded: %d new courses, %d new mentorship programs",
        inserted["courses"], inserted["mentorship"],
    )
    return inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    from trading_academy.database import get_sync_session

    with get_sync_session() as db:
        seed_catalog(db)
