#!/usr/bin/env python3
"""
Seed runner - loads the bootstrap admin and default numbering sequences.

Usage:
  # Development (local Docker Compose):
  ENVIRONMENT=development python seed.py

  # Production:
  ENVIRONMENT=production python seed.py

Seeds are idempotent - safe to re-run (all INSERT … ON CONFLICT DO NOTHING).
"""
import logging
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv
from sqlalchemy.engine import make_url

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

_repo_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=_repo_root / ".env", override=False)

SEEDS_DIR = Path(__file__).parent

SEED_FILES = [
    "seed_admin_user.sql",
    "seed_numbering_sequences.sql",
]

# table -> (query, minimum expected rows)
VERIFY_QUERIES = {
    "users": ("SELECT COUNT(*) FROM users WHERE role = 'ADMIN'", 1),
    "numbering_sequences": ("SELECT COUNT(*) FROM numbering_sequences", 7),
}


def _get_connection() -> psycopg2.extensions.connection:
    # imported after load_dotenv so Settings sees the .env values
    from app.core.config import get_settings

    settings = get_settings()
    try:
        url = make_url(settings.database_url_sync)
    except RuntimeError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    return psycopg2.connect(
        host=url.host,
        port=url.port,
        dbname=url.database,
        user=url.username,
        password=url.password,
        sslmode="prefer" if settings.is_development else "require",
    )


def run_seeds() -> None:
    conn = _get_connection()
    conn.autocommit = False
    cur = conn.cursor()

    try:
        for filename in SEED_FILES:
            logger.info("Running seed: %s", filename)
            cur.execute((SEEDS_DIR / filename).read_text(encoding="utf-8"))
        conn.commit()
        logger.info("All seeds committed successfully.")
    except Exception:
        conn.rollback()
        logger.exception("Seed failed - transaction rolled back.")
        sys.exit(1)
    finally:
        cur.close()
        conn.close()


def verify() -> None:
    conn = _get_connection()
    cur = conn.cursor()
    all_ok = True

    try:
        for table, (query, expected) in VERIFY_QUERIES.items():
            cur.execute(query)
            count = cur.fetchone()[0]
            ok = count >= expected
            all_ok = all_ok and ok
            logger.info("  %-22s %s  (got %d, expected >= %d)", table, "OK" if ok else "FAIL", count, expected)
    finally:
        cur.close()
        conn.close()

    if not all_ok:
        logger.error("Verification failed - some tables have fewer rows than expected.")
        sys.exit(1)

    logger.info("Verification passed.")


if __name__ == "__main__":
    logger.info("--- Running seeds ---")
    run_seeds()
    logger.info("--- Verifying row counts ---")
    verify()
