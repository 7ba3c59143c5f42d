"""Recompute statistics for every approved mentor.

Usage: python -m mentorhub.scripts.update_mentor_stats
"""

import logging
import sys

from mentorhub.database import SessionLocal
from mentorhub.services import stats_service

logger = logging.getLogger(__name__)


def update_all() -> int:
    db = SessionLocal()
    try:
        summary = stats_service.recompute_all_mentor_statistics(db)
    finally:
        db.close()

    for row in summary["results"]:
        if row["success"]:
            stats = row["statistics"]
            print(
                f"Updated mentor {row['mentor_id']} ({row['mentor_name']}): "
                f"avg={stats['average_rating']} ratings={stats['total_ratings']} "
                f"students={stats['students_helped']} minutes={stats['total_minutes']}"
            )
        else:
            print(
                f"Failed mentor {row['mentor_id']} ({row['mentor_name']}): {row['error']}",
                file=sys.stderr,
            )

    print(f"{summary['updated_count']}/{summary['total_mentors']} mentors updated")
    return 0 if summary["updated_count"] == summary["total_mentors"] else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(update_all())
