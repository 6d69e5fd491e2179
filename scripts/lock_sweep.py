"""
Lock predictions for fixtures that have kicked off.

Meant for cron, e.g. every minute:
    * * * * * cd /srv/matchday && python scripts/lock_sweep.py
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session
from matchday.database import engine
from matchday.services.locking import lock_started_fixtures


def main():
    with Session(engine) as db:
        swept = lock_started_fixtures(db)
    print(f"Swept {swept} fixtures")


if __name__ == "__main__":
    main()
