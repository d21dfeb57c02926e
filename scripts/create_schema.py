"""Create the task tables (task, task_assignee_hours) if they do not exist.

Usage:
    uv run python -m scripts.create_schema
Requires DATABASE_URL. The project, project_member and app_user tables
belong to the surrounding application and are not created here.
"""

import asyncio
import sys

from taskflow.infrastructure.persistence import database
from taskflow.shared.telemetry.logging import setup_logging


async def main() -> None:
    setup_logging()
    database._ensure_engine()
    if database.engine is None:
        print("DATABASE_URL not configured", file=sys.stderr)
        sys.exit(1)
    try:
        await database.create_schema()
    finally:
        await database.dispose_engine()
    print("Task tables created")


if __name__ == "__main__":
    asyncio.run(main())
