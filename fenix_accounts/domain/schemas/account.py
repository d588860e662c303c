"""Pydantic schemas for Account provisioning and the directory listing."""

from typing import Any, Optional

from pydantic import BaseModel


class AccountCreate(BaseModel):
    """Creation payload. Loose on purpose: the service validates and normalizes."""

    full_name: Optional[str] = None
    fenix_role: Optional[str] = None
    email: Optional[Any] = None
    username: Optional[Any] = None
    password: Optional[Any] = None
    privilege_level: Optional[Any] = None
    branch_id: Optional[Any] = None
    branch_label: Optional[Any] = None
    site_id: Optional[Any] = None
    local: Optional[Any] = None
    phone: Optional[Any] = None
    vehicle_type: Optional[Any] = None


class AccountAction(BaseModel):
    action: Optional[str] = None
    newPassword: Optional[Any] = None


class AccountFilter(BaseModel):
    q: Optional[str] = None
    role: Optional[str] = None
    branch: Optional[str] = None
    active: Optional[bool] = None
    page: int = 1
    page_size: int = 20
