"""
Database initialization, migration, and seeding utilities.

Seed file format (JSON):
    {
      "trainees":    [{"reg_no", "name", "surname", "email"?}],
      "supervisors": [{"staff_id", "name", "surname", "email"?}],
      "schools":     [{"name", "address"?}],
      "assignments": [{"reg_no", "staff_id", "school"?, "start_date", "end_date"}]
    }
Assignments refer to people by registration number / staff id and to
schools by name, since ids are generated on insert.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from database import get_db_manager
from placements.services.placement_service import PlacementService
from shared.models.entities import School, Supervisor, Trainee

logger = logging.getLogger(__name__)


def migrate():
    """Create all database tables."""
    tables = get_db_manager().create_tables()
    logger.info(f"Migrated {len(tables)} tables")


def seed(seed_file_path: str) -> dict:
    """Load placement records from a JSON file. Returns counts per section."""
    path = Path(seed_file_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_file_path}")

    with open(path, "r") as f:
        data = json.load(f)

    db = get_db_manager().get_session()
    counts = {"trainees": 0, "supervisors": 0, "schools": 0, "assignments": 0}
    try:
        service = PlacementService(db)
        for item in data.get("trainees", []):
            service.create_trainee(item)
            counts["trainees"] += 1
        for item in data.get("supervisors", []):
            service.create_supervisor(item)
            counts["supervisors"] += 1
        for item in data.get("schools", []):
            service.create_school(item)
            counts["schools"] += 1

        for item in data.get("assignments", []):
            trainee = db.query(Trainee).filter(Trainee.reg_no == item["reg_no"]).first()
            supervisor = db.query(Supervisor).filter(Supervisor.staff_id == item["staff_id"]).first()
            school = None
            if item.get("school"):
                school = db.query(School).filter(School.name == item["school"]).first()
            service.assign({
                "trainee_id": trainee.id if trainee else item["reg_no"],
                "supervisor_id": supervisor.id if supervisor else item["staff_id"],
                "school_id": school.id if school else None,
                "start_date": item.get("start_date"),
                "end_date": item.get("end_date"),
            })
            counts["assignments"] += 1
    finally:
        db.close()

    logger.info(
        f"Seeded {counts['trainees']} trainees, {counts['supervisors']} supervisors, "
        f"{counts['schools']} schools, {counts['assignments']} assignments"
    )
    return counts


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    parser = argparse.ArgumentParser(description="Database management CLI")
    parser.add_argument("--migrate", action="store_true", help="Create database tables")
    parser.add_argument("--seed", type=str, metavar="FILE", help="Seed placements from a JSON file")

    args = parser.parse_args()

    if not args.migrate and not args.seed:
        print("Usage:")
        print("  python db.py --migrate            # Create tables")
        print("  python db.py --seed <json_file>   # Load trainees, supervisors, schools, assignments")
        sys.exit(1)

    if args.migrate:
        migrate()
    if args.seed:
        seed(args.seed)
