from datetime import date, time, timedelta
import random

from checkmate.db import Base, SessionLocal, engine
from checkmate.engine.ledger import CheckinLedger
from checkmate.engine.recurrence import CustomDays, Daily, NoRepeat, Weekly, XPerWeek, is_active_on
from checkmate.models.goal import Goal
from checkmate.models.profile import Profile

DEMO_USER = "demo-user"


def clear_demo_goals(db, user_id: str = DEMO_USER) -> None:
    """Delete the demo user's goals (check-ins and markers cascade)."""
    for goal in db.query(Goal).filter(Goal.user_id == user_id).all():
        db.delete(goal)
    db.commit()


def seed_demo_goals(db, user_id: str = DEMO_USER) -> None:
    """Insert one goal per recurrence kind, started four weeks ago, with patchy check-ins."""
    today = date.today()
    start = today - timedelta(weeks=4)

    goals = [
        ("Submit tax forms", NoRepeat(), 1, today + timedelta(days=3), time(17, 0)),
        ("Meditate", Daily(), 1, start, time(4, 0)),
        ("Call grandma", Weekly(), 1, start, None),
        ("Gym: Mon/Wed/Fri", CustomDays(days={1, 3, 5}), 1, start, time(4, 0)),
        ("Run 3x per week", XPerWeek(count=3, any_days=True), 1, start, None),
        ("Drink water", Daily(), 3, start, time(23, 0)),
    ]

    if not db.query(Profile).filter(Profile.user_id == user_id).first():
        db.add(Profile(user_id=user_id, instagram_username="demo.checkmate"))

    created = []
    for title, rule, per_day, start_date, reset in goals:
        goal = Goal(
            user_id=user_id,
            title=title,
            description="seed",
            checkins_per_day=per_day,
            start_date=start_date,
            reset_time=reset,
        )
        goal.recurrence = rule
        db.add(goal)
        created.append(goal)
    db.commit()

    ledger = CheckinLedger(db)
    checkins = 0
    for goal in created:
        d = goal.start_date
        while d < today:
            # Skip roughly one active day in four so the sweep has misses to find
            if is_active_on(goal, d) and random.random() > 0.25:
                ledger.set_count(goal, d, random.randint(1, goal.checkins_per_day))
                checkins += 1
            d += timedelta(days=1)

    print(f"Seeded {len(created)} demo goals with {checkins} check-ins")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        clear_demo_goals(db)
        seed_demo_goals(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
