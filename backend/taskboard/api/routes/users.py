"""Tenant member management routes. Admin only."""

from fastapi import APIRouter, Depends, Query

from taskboard.core.auth import require_actor
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.members import ChangeRoleRequest, InviteMemberRequest, MemberResponse
from taskboard.services.member_service import MemberService

router = APIRouter()


@router.get("", response_model=list[MemberResponse])
async def list_members(actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await MemberService(session).list_members(actor)


@router.post("", response_model=MemberResponse, status_code=201)
async def invite_member(request: InviteMemberRequest, actor: Actor = Depends(require_actor)):
    """Invite a member by email; they are linked to their identity on first sign-in."""
    factory = get_session_factory()
    async with factory() as session:
        return await MemberService(session).invite_member(actor, request.email, request.name, request.role)


@router.put("", response_model=MemberResponse)
async def change_role(request: ChangeRoleRequest, actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await MemberService(session).change_role(actor, request.email, request.role)


@router.delete("")
async def remove_member(email: str = Query(default=""), actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        await MemberService(session).remove_member(actor, email)
        return {"ok": True}
