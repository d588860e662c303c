"""Users API routes — operator account provisioning and directory."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from fenix_accounts.application.services.account_service import AccountService
from fenix_accounts.config import get_settings
from fenix_accounts.core.exceptions import ValidationError
from fenix_accounts.domain.schemas.account import AccountAction, AccountCreate, AccountFilter
from fenix_accounts.interfaces.deps import get_account_service

router = APIRouter(prefix="/endpoints/users", tags=["Users"])

settings = get_settings()


def _parse_active(raw: Optional[str]) -> Optional[bool]:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


@router.get("")
def list_users(
    q: Optional[str] = None,
    role: Optional[str] = None,
    branch: Optional[str] = None,
    active: Optional[str] = None,
    page: int = 1,
    pageSize: int = settings.DEFAULT_PAGE_SIZE,
    service: AccountService = Depends(get_account_service),
):
    """List accounts with search, filters and pagination."""
    filters = AccountFilter(
        q=q,
        role=role,
        branch=branch,
        active=_parse_active(active),
        page=page,
        page_size=pageSize,
    )
    return {"ok": True, **service.list_accounts(filters)}


@router.post("")
def create_user(
    body: AccountCreate,
    service: AccountService = Depends(get_account_service),
):
    """Create an account, synthesizing any missing credentials."""
    data = service.create_account(body.model_dump())
    return {"ok": True, "data": data}


@router.get("/{account_id}")
def get_user(account_id: str, service: AccountService = Depends(get_account_service)):
    return {"ok": True, "data": service.get_account(account_id)}


@router.patch("/{account_id}")
def update_user(
    account_id: str,
    body: Dict[str, Any] = Body(...),
    service: AccountService = Depends(get_account_service),
):
    """Partial profile edit; an empty payload is a no-op."""
    return {"ok": True, "data": service.update_account(account_id, body)}


@router.post("/{account_id}")
def user_action(
    account_id: str,
    body: AccountAction,
    service: AccountService = Depends(get_account_service),
):
    """Per-account actions: `toggle` and `reset-password`."""
    if body.action == "toggle":
        return {"ok": True, "active": service.toggle_active(account_id)}

    if body.action == "reset-password":
        service.reset_password(account_id, body.newPassword)
        return {"ok": True}

    raise ValidationError("Acción no soportada")


@router.delete("/{account_id}")
def delete_user(account_id: str, service: AccountService = Depends(get_account_service)):
    service.delete_account(account_id)
    return {"ok": True}
