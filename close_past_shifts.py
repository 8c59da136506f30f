#!/usr/bin/env python3
"""
Settles the status of every shift still marked en_curso whose night is over.
Meant to run once a day (cron / Render job) shortly after shift_end.

Usage:
    python close_past_shifts.py [YYYY-MM-DD]

The optional date overrides "today" (useful to re-run a missed day).
"""

import sys
from pathlib import Path

# Add the apps/api directory to the path so we can import nightwatch
api_dir = Path(__file__).parent / "apps" / "api"
sys.path.insert(0, str(api_dir))

from dotenv import load_dotenv

# Settings() reads DATABASE_URL at import; the .env lives in apps/api
load_dotenv(api_dir / ".env")

from nightwatch.core import dates
from nightwatch.core.database import SessionLocal
from nightwatch.services.completion import close_past_shifts


def main(today: str | None = None) -> int:
    db = SessionLocal()
    try:
        today = dates.to_date_key(today) if today else dates.today_key()
        changed = close_past_shifts(db, today=today)
        print(f"✅ {changed} shift(s) before {today} settled")
        return 0
    except Exception as e:
        print(f"❌ Error closing past shifts: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
