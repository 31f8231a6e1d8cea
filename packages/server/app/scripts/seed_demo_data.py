"""
Create a demo organization with an owner, a few teams and categories, and the
two standard help types.

Usage:
    python -m app.scripts.seed_demo_data --email owner@example.com --password secret123
"""

import argparse
import asyncio

from sqlmodel import select

from app.core.auth import hash_password
from app.core.database import get_session_context, init_db
from app.models.category import Category
from app.models.help import HelpType
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.team import Team
from app.models.user import User
from quizory_shared.schemas.common import HelpBehavior, Role, SubscriptionPlan

DEMO_ORG_NAME = "Demo Quiz League"
DEMO_TEAMS = ["Kvizomanija", "Sveznalice", "Mozgići", "Pub Pundits"]
DEMO_CATEGORIES = ["Istorija", "Geografija", "Sport", "Muzika", "Film"]
DEMO_HELP_TYPES = [
    ("Joker", HelpBehavior.DOUBLE_SCORE),
    ("Double Chance", HelpBehavior.MARKER_ONLY),
]


async def seed(email: str, password: str) -> None:
    await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()
        if user:
            print(f"User {email} already exists; nothing to do.")
            return

        user = User(
            email=email.lower(),
            display_name=email.split("@")[0],
            password_hash=hash_password(password),
        )
        org = Organization(name=DEMO_ORG_NAME, subscription_plan=SubscriptionPlan.FREE.value)
        session.add(user)
        session.add(org)
        await session.flush()

        session.add(Membership(user_id=user.id, org_id=org.id, role=Role.OWNER.value))
        for name in DEMO_TEAMS:
            session.add(Team(org_id=org.id, name=name))
        for name in DEMO_CATEGORIES:
            session.add(Category(org_id=org.id, name=name))
        for name, behavior in DEMO_HELP_TYPES:
            session.add(HelpType(org_id=org.id, name=name, behavior=behavior.value))

        print(f"Created {DEMO_ORG_NAME} ({org.id}) owned by {email}.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo quiz league.")
    parser.add_argument("--email", required=True, help="Email address for the owner")
    parser.add_argument("--password", required=True, help="Password for the owner")

    args = parser.parse_args()

    asyncio.run(seed(args.email, args.password))
