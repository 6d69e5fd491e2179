"""Seed tournament stages and teams."""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select
from matchday.database import engine, create_db_and_tables
from matchday.models.stage import Stage, StageKey
from matchday.models.team import Team

# Multipliers are stored for display only; scoring is a flat 3/1/0
STAGES = [
    {"name": "Group Stage", "slug": StageKey.GROUP_STAGE.value, "sort_order": 1, "points_multiplier": 1.0},
    {"name": "Round of 16", "slug": StageKey.ROUND_OF_16.value, "sort_order": 2, "points_multiplier": 1.5},
    {"name": "Quarter-finals", "slug": StageKey.QUARTER_FINALS.value, "sort_order": 3, "points_multiplier": 2.0},
    {"name": "Semi-finals", "slug": StageKey.SEMI_FINALS.value, "sort_order": 4, "points_multiplier": 2.5},
    {"name": "Third Place", "slug": StageKey.THIRD_PLACE.value, "sort_order": 5, "points_multiplier": 2.5},
    {"name": "Final", "slug": StageKey.FINAL.value, "sort_order": 6, "points_multiplier": 3.0},
]

TEAMS = [
    # Group A
    {"name": "Mexico", "code": "MEX", "group_letter": "A"},
    {"name": "South Africa", "code": "RSA", "group_letter": "A"},
    {"name": "South Korea", "code": "KOR", "group_letter": "A"},
    {"name": "TBD A4", "code": "A4", "group_letter": "A"},

    # Group B
    {"name": "Canada", "code": "CAN", "group_letter": "B"},
    {"name": "Qatar", "code": "QAT", "group_letter": "B"},
    {"name": "Switzerland", "code": "SUI", "group_letter": "B"},
    {"name": "TBD B4", "code": "B4", "group_letter": "B"},

    # Group D
    {"name": "USA", "code": "USA", "group_letter": "D"},
    {"name": "Paraguay", "code": "PAR", "group_letter": "D"},
    {"name": "Australia", "code": "AUS", "group_letter": "D"},
    {"name": "TBD D4", "code": "D4", "group_letter": "D"},
]


def seed_stages(db: Session) -> int:
    created = 0
    for stage_data in STAGES:
        existing = db.exec(select(Stage).where(Stage.slug == stage_data["slug"])).first()
        if existing:
            continue
        db.add(Stage(**stage_data))
        created += 1
    db.commit()
    return created


def seed_teams(db: Session) -> int:
    created = 0
    for team_data in TEAMS:
        existing = db.exec(select(Team).where(Team.code == team_data["code"])).first()
        if existing:
            continue
        db.add(Team(**team_data))
        created += 1
    db.commit()
    return created


def main():
    create_db_and_tables()
    with Session(engine) as db:
        stages = seed_stages(db)
        teams = seed_teams(db)
    print(f"Seeded {stages} stages and {teams} teams")


if __name__ == "__main__":
    main()
