"""DTOs for principals and projects (owned by external directories)."""

from __future__ import annotations

from dataclasses import dataclass

from taskflow.domain.enums import ProjectStatus, Role


@dataclass(frozen=True)
class PrincipalResult:
    """Resolved caller or directory user. Higher hierarchy means more senior."""

    id: int
    role: str
    hierarchy: int = 1
    division: str | None = None
    department: str | None = None
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER.value

    @property
    def is_staff(self) -> bool:
        return self.role == Role.STAFF.value


@dataclass(frozen=True)
class ProjectResult:
    id: int
    status: str
    creator_id: int | None
    name: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE.value
