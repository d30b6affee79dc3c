"""Admin authorisation and the audit trail shared by every moderation write."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, PermissionDeniedError
from ..models import AdminAction, AdminActionType, Champion
from ..storage.repositories import AdminActionRepository, ChampionRepository


async def require_admin(session: AsyncSession, admin_id: int) -> Champion:
    """Load the acting champion and check the stored admin flag.

    Raises:
        NotFoundError: If no champion has this id
        PermissionDeniedError: If the champion is not an admin
    """
    admin = await ChampionRepository(session).get(admin_id)
    if admin is None:
        raise NotFoundError("admin", admin_id)
    if not admin.is_admin:
        raise PermissionDeniedError(f"Champion {admin_id} is not an admin")
    return admin


async def record_action(
    session: AsyncSession,
    admin_id: int,
    action_type: AdminActionType,
    target_type: str,
    target_id: int,
    details: dict[str, Any],
) -> AdminAction:
    """Append an audit row inside the caller's transaction."""
    return await AdminActionRepository(session).create(
        AdminAction(
            admin_id=admin_id,
            action_type=action_type.value,
            target_type=target_type,
            target_id=str(target_id),
            details=details,
        )
    )
