from typing import List, Dict, Any
from sqlmodel import Session, select

from ..models.fixture import Fixture, FixtureStatus
from ..models.stage import StageKey
from ..models.team import Team
from .fixtures import get_stage_by_slug


def calculate_group_standings(
    db: Session,
    group_letter: str,
    stage_key: StageKey = StageKey.GROUP_STAGE
) -> List[Dict[str, Any]]:
    """
    Calculate a group table from finished fixtures between the group's teams.
    Returns teams sorted by: Points > Goal Diff > Goals Scored.
    Teams level on all three keep their alphabetical order.
    """
    teams = db.exec(
        select(Team).where(Team.group_letter == group_letter).order_by(Team.name)
    ).all()
    if not teams:
        return []

    # Initialize team stats
    teams_stats: Dict[int, Dict[str, Any]] = {}
    for team in teams:
        teams_stats[team.id] = {
            "team_id": team.id,
            "team_name": team.name,
            "team_code": team.code,
            "played": 0,
            "won": 0,
            "drawn": 0,
            "lost": 0,
            "goals_for": 0,
            "goals_against": 0,
            "goal_diff": 0,
            "points": 0
        }

    team_ids = list(teams_stats)
    fixtures_query = select(Fixture).where(
        Fixture.status == FixtureStatus.FINISHED,
        Fixture.home_team_id.in_(team_ids),
        Fixture.away_team_id.in_(team_ids)
    )
    stage = get_stage_by_slug(db, stage_key.value)
    if stage is not None:
        fixtures_query = fixtures_query.where(Fixture.stage_id == stage.id)
    fixtures = db.exec(fixtures_query).all()

    # Process each finished fixture
    for fixture in fixtures:
        if not fixture.has_result:
            continue

        home_score = fixture.home_score
        away_score = fixture.away_score

        home_stats = teams_stats[fixture.home_team_id]
        away_stats = teams_stats[fixture.away_team_id]

        # Update played
        home_stats["played"] += 1
        away_stats["played"] += 1

        # Update goals
        home_stats["goals_for"] += home_score
        home_stats["goals_against"] += away_score
        away_stats["goals_for"] += away_score
        away_stats["goals_against"] += home_score

        # Determine winner and update points
        if home_score > away_score:
            home_stats["won"] += 1
            home_stats["points"] += 3
            away_stats["lost"] += 1
        elif away_score > home_score:
            away_stats["won"] += 1
            away_stats["points"] += 3
            home_stats["lost"] += 1
        else:  # draw
            home_stats["drawn"] += 1
            away_stats["drawn"] += 1
            home_stats["points"] += 1
            away_stats["points"] += 1

    # Calculate goal difference
    for stats in teams_stats.values():
        stats["goal_diff"] = stats["goals_for"] - stats["goals_against"]

    # Sort by points, then goal diff, then goals scored
    sorted_standings = sorted(
        teams_stats.values(),
        key=lambda x: (x["points"], x["goal_diff"], x["goals_for"]),
        reverse=True
    )

    # Add position
    for i, standing in enumerate(sorted_standings):
        standing["position"] = i + 1

    return sorted_standings


def get_group_letters(db: Session) -> List[str]:
    """All group labels in use, sorted."""
    groups = db.exec(
        select(Team.group_letter).where(Team.group_letter.is_not(None)).distinct().order_by(Team.group_letter)
    ).all()
    return [g for g in groups if g]


def calculate_all_group_standings(db: Session) -> List[Dict[str, Any]]:
    return [
        {"group_letter": group, "standings": calculate_group_standings(db, group)}
        for group in get_group_letters(db)
    ]
