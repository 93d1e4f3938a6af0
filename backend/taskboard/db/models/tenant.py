"""Tenant and TenantMember models: organizations and their memberships."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String

from taskboard.db.base import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class TenantMember(Base):
    __tablename__ = "tenant_members"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)

    # Identity provider subject; empty for members invited by email only
    user_id = Column(String(255), nullable=False, default="", index=True)
    email = Column(String(320), nullable=True, index=True)
    name = Column(String(255), nullable=False, default="")
    role = Column(String(50), nullable=False, default="member")  # owner, admin, manager, member, viewer

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
