"""TenantService — maps an authenticated identity to a tenant membership."""

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.config import get_settings
from taskboard.db.models.tenant import Tenant, TenantMember
from taskboard.domain.access import Actor
from taskboard.domain.stages import normalize_email

logger = structlog.get_logger(__name__)


class TenantService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_membership(self, user_id: str, email: str | None) -> TenantMember | None:
        """Membership matched on identity subject, else on email.

        Members invited by email have no subject yet; the first match binds it.
        """
        email = normalize_email(email)
        clauses = [TenantMember.user_id == user_id]
        if email:
            clauses.append(func.lower(TenantMember.email) == email)

        result = await self.session.execute(
            select(TenantMember)
            .where(or_(*clauses))
            .order_by(TenantMember.created_at.asc())
            .limit(1)
        )
        member = result.scalar_one_or_none()
        if member is not None and not member.user_id:
            member.user_id = user_id
            await self.session.commit()
            logger.info("tenant_member_bound", tenant_id=member.tenant_id, member_id=member.id)
        return member

    async def resolve_actor(self, user_id: str, email: str | None, display_name: str | None) -> Actor | None:
        member = await self.find_membership(user_id, email)
        if member is None:
            return None

        return Actor(
            user_id=user_id,
            email=normalize_email(email or member.email),
            display_name=(display_name or member.name or "").strip(),
            tenant_id=member.tenant_id,
            role=member.role,
            is_tenant_admin=member.role in get_settings().admin_roles,
        )

    async def bootstrap(
        self, user_id: str, email: str | None, display_name: str | None, tenant_name: str
    ) -> tuple[TenantMember, bool]:
        """Return the caller's membership, creating a tenant they own if needed."""
        existing = await self.find_membership(user_id, email)
        if existing is not None:
            return existing, False

        tenant = Tenant(name=(tenant_name or "").strip() or "My Workspace")
        self.session.add(tenant)
        await self.session.flush()

        member = TenantMember(
            tenant_id=tenant.id,
            user_id=user_id,
            email=normalize_email(email) or None,
            name=(display_name or "").strip(),
            role="owner",
        )
        self.session.add(member)
        await self.session.commit()

        logger.info("tenant_created", tenant_id=tenant.id, user_id=user_id)
        return member, True
