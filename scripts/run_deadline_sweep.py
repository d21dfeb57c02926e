"""Run the deadline sweep: notify on open tasks due today, tomorrow, or overdue.

Usage:
    uv run python -m scripts.run_deadline_sweep [YYYY-MM-DD]
If the date is omitted, the current UTC day is used.
Requires DATABASE_URL. Intended for a daily cron.
"""

import asyncio
import sys

from taskflow.core.composition import build_deadline_sweep
from taskflow.domain.exceptions import SqlNotConfiguredException
from taskflow.infrastructure.persistence import database
from taskflow.shared.telemetry.logging import setup_logging
from taskflow.shared.utils.datetime import parse_calendar_date


async def main() -> None:
    """Run one sweep in a single transaction and print the counts."""
    setup_logging()
    try:
        sessionmaker = database.get_sessionmaker()
    except SqlNotConfiguredException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    today = None
    if len(sys.argv) > 1:
        try:
            today = parse_calendar_date(sys.argv[1])
        except ValueError:
            print(f"Invalid date: {sys.argv[1]}", file=sys.stderr)
            sys.exit(1)

    try:
        async with sessionmaker() as session:
            async with session.begin():
                result = await build_deadline_sweep(session).execute(today=today)
    finally:
        await database.dispose_engine()

    print(
        f"Checked {result.tasks_checked} tasks: "
        f"{result.impending_notified} due soon, "
        f"{result.overdue_notified}/{result.overdue_found} overdue notified, "
        f"{result.notifications_sent} notifications, {result.errors} errors"
    )


if __name__ == "__main__":
    asyncio.run(main())
