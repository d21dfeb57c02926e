"""User directory: read-only access to the external app_user table."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.principal import PrincipalResult
from taskflow.domain.enums import Role

_USER_COLUMNS = "id, name, role, hierarchy, division, department"


def _to_result(row: Mapping[str, Any]) -> PrincipalResult:
    return PrincipalResult(
        id=row["id"],
        name=row["name"],
        role=row["role"] or Role.STAFF.value,
        hierarchy=row["hierarchy"] if row["hierarchy"] is not None else 1,
        division=row["division"],
        department=row["department"],
    )


class UserDirectory:
    """Implements IUserDirectory. Inactive users are invisible."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, user_id: int) -> PrincipalResult | None:
        result = await self.db.execute(
            text(f"SELECT {_USER_COLUMNS} FROM app_user WHERE id = :id AND is_active = true"),
            {"id": user_id},
        )
        row = result.mappings().first()
        return _to_result(row) if row else None

    async def get_many_by_ids(self, user_ids: list[int]) -> list[PrincipalResult]:
        if not user_ids:
            return []
        stmt = text(
            f"SELECT {_USER_COLUMNS} FROM app_user "
            "WHERE id IN :ids AND is_active = true"
        ).bindparams(bindparam("ids", expanding=True))
        result = await self.db.execute(stmt, {"ids": list(user_ids)})
        return [_to_result(row) for row in result.mappings().all()]

    async def get_subordinates(
        self, division: str | None, below_hierarchy: int
    ) -> list[PrincipalResult]:
        if division is None:
            return []
        result = await self.db.execute(
            text(
                f"SELECT {_USER_COLUMNS} FROM app_user "
                "WHERE division = :division AND hierarchy < :hierarchy AND is_active = true"
            ),
            {"division": division, "hierarchy": below_hierarchy},
        )
        return [_to_result(row) for row in result.mappings().all()]
