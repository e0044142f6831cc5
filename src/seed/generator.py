"""CLI entry-point for generating mock seed data into the source tables.

Usage:
    python -m src.seed.generator --profile=standard --seed=42
    python -m src.seed.generator --profile=dirty --seed=42 --reset
"""

import argparse
import random
import time

from faker import Faker
from sqlalchemy import delete, insert, text
from sqlalchemy.orm import Session

from src.config import settings
from src.db.source_engine import source_engine, source_session
from src.models.source import (
    AssigneeUser,
    BusinessArea,
    CallerUser,
    Incident,
    SourceBase,
    SysAttachment,
    SysChoice,
    SysJournalField,
)
from src.seed.factories.incidents import (
    generate_attachments,
    generate_incidents,
    generate_work_notes,
)
from src.seed.factories.reference import generate_business_areas, generate_choices, generate_users
from src.seed.profiles import get_profile

BATCH_SIZE = 5000

TABLES_IN_ORDER = [
    SysAttachment,
    SysJournalField,
    Incident,
    AssigneeUser,
    CallerUser,
    BusinessArea,
    SysChoice,
]


def _bulk_insert(session: Session, model, rows: list[dict]) -> int:
    """Insert rows into a source table in batches."""
    for start in range(0, len(rows), BATCH_SIZE):
        session.execute(insert(model), rows[start : start + BATCH_SIZE])
    return len(rows)


def _reset_tables(session: Session) -> None:
    for model in TABLES_IN_ORDER:
        session.execute(delete(model))
    session.commit()
    print("  All source tables emptied.")


def run_seed(profile_name: str, seed: int, reset: bool = False) -> dict[str, int]:
    """Generate and insert one full source data set."""
    print(f"\n{'='*60}")
    print("Incident Metrics — Seed Data Generator")
    print(f"Profile: {profile_name} | Seed: {seed} | Reset: {reset}")
    print(f"{'='*60}\n")

    profile = get_profile(profile_name)
    rng = random.Random(seed)
    fake = Faker()
    fake.seed_instance(seed)
    start_time = time.time()

    print("[1/4] Creating source tables...")
    with source_engine.begin() as connection:
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {settings.source_db_schema}"))
    SourceBase.metadata.create_all(source_engine)

    counts: dict[str, int] = {}
    with source_session() as session:
        try:
            if reset:
                _reset_tables(session)

            print("[2/4] Generating reference data...")
            users = generate_users(profile, rng, fake)
            business_areas = generate_business_areas(profile, rng)
            counts["sys_choice"] = _bulk_insert(session, SysChoice, generate_choices())
            counts["business_area"] = _bulk_insert(session, BusinessArea, business_areas)
            counts["assignee_user"] = _bulk_insert(session, AssigneeUser, users["assignees"])
            counts["caller_user"] = _bulk_insert(session, CallerUser, users["callers"])
            session.commit()

            print("[3/4] Generating incidents...")
            incidents = generate_incidents(profile, users, business_areas, rng)
            counts["incident"] = _bulk_insert(session, Incident, incidents)
            session.commit()

            print("[4/4] Generating work notes and attachments...")
            counts["sys_journal_field"] = _bulk_insert(
                session, SysJournalField, generate_work_notes(incidents, profile, rng, fake)
            )
            counts["sys_attachment"] = _bulk_insert(
                session, SysAttachment, generate_attachments(incidents, profile, rng, fake)
            )
            session.commit()
        except Exception as e:
            session.rollback()
            print(f"\nERROR: Seed generation failed: {e}")
            raise

    elapsed = time.time() - start_time
    print(f"\n{'='*60}")
    print(f"Seed generation complete in {elapsed:.1f}s")
    for table, count in counts.items():
        print(f"  {table}: {count} rows")
    print(f"{'='*60}\n")
    return counts


def main():
    parser = argparse.ArgumentParser(description="Incident Metrics Seed Data Generator")
    parser.add_argument(
        "--profile",
        type=str,
        default=settings.seed_profile,
        help="Seed profile (standard, dirty, clean, scale_test)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=settings.seed_random_seed,
        help="Random seed for reproducible data",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Empty all source tables before generating",
    )
    args = parser.parse_args()
    run_seed(args.profile, args.seed, args.reset)


if __name__ == "__main__":
    main()
