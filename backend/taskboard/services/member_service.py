"""MemberService — tenant membership administration. Admin only."""

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.config import get_settings
from taskboard.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from taskboard.db.models.tenant import TenantMember
from taskboard.domain.access import MEMBER_ROLES, Actor
from taskboard.domain.stages import normalize_email

logger = structlog.get_logger(__name__)


def _parse_role(value: str | None) -> str:
    role = (value or "").strip().lower()
    if role not in MEMBER_ROLES:
        raise InvalidArgumentError(f"role must be one of: {', '.join(MEMBER_ROLES)}")
    return role


class MemberService:
    """Members of the actor's tenant, addressed by email.

    Members are invited by email with an empty identity subject; the subject
    is bound on their first sign-in (see ``TenantService.find_membership``).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_members(self, actor: Actor) -> list[TenantMember]:
        self._require_admin(actor)
        result = await self.session.execute(
            select(TenantMember)
            .where(TenantMember.tenant_id == actor.tenant_id)
            .order_by(TenantMember.name.asc(), TenantMember.created_at.asc())
        )
        return list(result.scalars().all())

    async def invite_member(self, actor: Actor, email: str, name: str, role: str | None) -> TenantMember:
        """Add a member who can sign in later with ``email``.

        Raises:
            InvalidArgumentError: missing email or name, unknown role, email taken
        """
        self._require_admin(actor)
        email = normalize_email(email)
        name = (name or "").strip()
        if not email:
            raise InvalidArgumentError("email is required")
        if not name:
            raise InvalidArgumentError("name is required")
        role = _parse_role(role or "member")

        if await self._find(actor.tenant_id, email) is not None:
            raise InvalidArgumentError("User with this email already exists")

        member = TenantMember(tenant_id=actor.tenant_id, user_id="", email=email, name=name, role=role)
        self.session.add(member)
        await self.session.commit()

        logger.info("tenant_member_invited", tenant_id=actor.tenant_id, member_id=member.id, role=role)
        return member

    async def change_role(self, actor: Actor, email: str, role: str) -> TenantMember:
        """Set a member's role. Admins cannot take their own admin rights away.

        Raises:
            InvalidArgumentError: missing email, unknown role, self-demotion
            NotFoundError: no member with that email in the tenant
        """
        self._require_admin(actor)
        email = normalize_email(email)
        if not email:
            raise InvalidArgumentError("email is required")
        role = _parse_role(role)

        if email == normalize_email(actor.email) and role not in get_settings().admin_roles:
            raise InvalidArgumentError("You cannot change your own admin role")

        member = await self._find(actor.tenant_id, email)
        if member is None:
            raise NotFoundError("User not found in this tenant")

        member.role = role
        await self.session.commit()

        logger.info("tenant_member_role_changed", tenant_id=actor.tenant_id, member_id=member.id, role=role)
        return member

    async def remove_member(self, actor: Actor, email: str) -> None:
        """Remove a member by email. Removing an unknown email is a no-op.

        Raises:
            InvalidArgumentError: missing email, or the actor's own email
        """
        self._require_admin(actor)
        email = normalize_email(email)
        if not email:
            raise InvalidArgumentError("email is required")
        if email == normalize_email(actor.email):
            raise InvalidArgumentError("You cannot remove yourself")

        result = await self.session.execute(
            delete(TenantMember).where(
                TenantMember.tenant_id == actor.tenant_id,
                func.lower(TenantMember.email) == email,
            )
        )
        await self.session.commit()

        logger.info("tenant_member_removed", tenant_id=actor.tenant_id, removed=result.rowcount)

    async def _find(self, tenant_id: str, email: str) -> TenantMember | None:
        result = await self.session.execute(
            select(TenantMember)
            .where(TenantMember.tenant_id == tenant_id, func.lower(TenantMember.email) == email)
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if not actor.is_tenant_admin:
            raise ForbiddenError("Admin only")
