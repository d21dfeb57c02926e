"""Project repository: read-only access to the external project tables."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.principal import ProjectResult

# Member role that grants project-wide task visibility
MANAGER_MEMBER_ROLE = "manager"


class ProjectRepository:
    """Implements IProjectRepository over project and project_member."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, project_id: int) -> ProjectResult | None:
        result = await self.db.execute(
            text("SELECT id, name, status, creator_id FROM project WHERE id = :id"),
            {"id": project_id},
        )
        row = result.mappings().first()
        if row is None:
            return None
        return ProjectResult(
            id=row["id"],
            name=row["name"],
            status=row["status"],
            creator_id=row["creator_id"],
        )

    async def get_accessible_project_ids(self, user_id: int) -> set[int]:
        """Projects the user created, plus those where they hold the manager member role."""
        stmt = text("""
            SELECT id FROM project WHERE creator_id = :user_id
            UNION
            SELECT project_id FROM project_member
            WHERE user_id = :user_id AND role = :manager_role
        """)
        result = await self.db.execute(
            stmt, {"user_id": user_id, "manager_role": MANAGER_MEMBER_ROLE}
        )
        return {row[0] for row in result.fetchall()}

    async def get_member_project_ids(self, user_id: int) -> set[int]:
        result = await self.db.execute(
            text("SELECT project_id FROM project_member WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        return {row[0] for row in result.fetchall()}

    async def is_member(self, project_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            text(
                "SELECT 1 FROM project_member "
                "WHERE project_id = :project_id AND user_id = :user_id LIMIT 1"
            ),
            {"project_id": project_id, "user_id": user_id},
        )
        return result.first() is not None
