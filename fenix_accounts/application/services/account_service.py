"""Account service — provisioning, directory listing and per-account actions.

Creation: validate -> resolve branch -> fill credentials -> insert with the
schema-drift fallback inside each uniqueness attempt. Store failures are
classified here, close to where they happen; the API layer only maps the
resulting AppError to a status code.
"""

import math
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

from fenix_accounts.application.services.branch_service import (
    has_branch_fields,
    normalize_branch_payload,
    parse_branch_filter,
)
from fenix_accounts.application.services.credential_service import (
    MIN_PASSWORD_LENGTH,
    CredentialGenerator,
    Credentials,
)
from fenix_accounts.application.services.login_index import (
    build_login_index_values,
    run_with_login_index_fallback,
)
from fenix_accounts.application.services.uniqueness import UniquenessRetry
from fenix_accounts.core.exceptions import (
    ConflictError,
    ConstraintError,
    EntityNotFoundException,
    PersistenceError,
    ValidationError,
)
from fenix_accounts.domain.models.roles import (
    ALLOWED_ROLES,
    PEOPLE_ROLE_CHECK,
    PEOPLE_SITE_CHECK,
    is_promoter,
    normalize_role_token,
)
from fenix_accounts.domain.repositories.account_repository import AccountRepository
from fenix_accounts.domain.schemas.account import AccountFilter
from fenix_accounts.infrastructure.db_errors import DbFailure, FailureKind, StoreError
from fenix_accounts.infrastructure.schema_capabilities import PASSWORD_COLUMNS, SchemaCapabilities

logger = structlog.get_logger(__name__)

BRANCH_REQUIRED_MESSAGE = (
    "Sucursal es obligatoria para roles distintos de PROMOTOR. "
    "Selecciona una sucursal o usa el rol PROMOTOR."
)
INVALID_ROLE_MESSAGE = f"Rol inválido. Usa uno de: {', '.join(ALLOWED_ROLES)}."

# Never leaves the service
HIDDEN_FIELDS = ("password_hash", "password")


def map_constraint_message(failure: DbFailure) -> Optional[str]:
    """Friendly text for the known check constraints on the people table."""
    if failure.kind is not FailureKind.CHECK_VIOLATION:
        return None
    if failure.constraint == PEOPLE_SITE_CHECK:
        return BRANCH_REQUIRED_MESSAGE
    if failure.constraint == PEOPLE_ROLE_CHECK:
        return INVALID_ROLE_MESSAGE
    return None


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _privilege_level(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Numeric coercion; non-numeric or non-finite input yields `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        level = float(value)
    except (TypeError, ValueError):
        return default
    return int(level) if math.isfinite(level) else default


def _public(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {key: value for key, value in row.items() if key not in HIDDEN_FIELDS}


class AccountService:
    def __init__(
        self,
        repo: AccountRepository,
        generator: CredentialGenerator,
        capabilities: SchemaCapabilities,
        attempts: int = 3,
        max_page_size: int = 100,
    ):
        self.repo = repo
        self.generator = generator
        self.capabilities = capabilities
        self.retry = UniquenessRetry(attempts)
        self.max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Writes with schema-drift tolerance
    # ------------------------------------------------------------------

    def _write(
        self,
        execute: Callable[[Dict[str, Any]], Any],
        payload: Dict[str, Any],
        index_values: Dict[str, str],
    ):
        """Run one write, dropping optional columns the table turns out to lack.

        Dropping a column retries the same write; it never counts as a
        uniqueness attempt.
        """
        while True:
            sent = self.capabilities.strip(payload)
            try:
                return run_with_login_index_fallback(self.capabilities, sent, index_values, execute)
            except StoreError as exc:
                failure = exc.failure
                if (
                    failure.kind is FailureKind.MISSING_COLUMN
                    and failure.column in PASSWORD_COLUMNS
                    and failure.column in sent
                ):
                    # Another request may have marked it first; the retry is still owed
                    self.capabilities.mark_missing(failure.column)
                    continue
                raise

    def _raise_for_failure(self, failure: DbFailure, fallback: str = "Create user failed"):
        friendly = map_constraint_message(failure)
        if friendly:
            raise ConstraintError(friendly, details={"constraint": failure.constraint})
        if failure.kind is FailureKind.CHECK_VIOLATION:
            raise ConstraintError(failure.message or fallback, details={"constraint": failure.constraint})
        raise PersistenceError(failure.message or fallback)

    def _conflict(self, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None):
        conflict = self.repo.find_conflict(username, email, exclude_id=exclude_id)
        if not conflict:
            return ConflictError("Username o email ya existen")

        state = "activo" if conflict["active"] else "inactivo"
        owner = conflict["username"] or conflict["email"]
        logger.info("Credential conflict", existing_id=conflict["id"], existing_active=bool(conflict["active"]))
        return ConflictError(
            f"Ya existe el usuario {owner} ({state}). "
            "Búscalo en Usuarios (incluye inactivos) o cambia usuario/correo.",
            details={"conflict_id": conflict["id"], "conflict_active": bool(conflict["active"])},
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_account(self, body: Mapping[str, Any]) -> Dict[str, Any]:
        full_name = str(body.get("full_name") or "").strip()
        if not full_name:
            raise ValidationError("full_name es requerido")

        fenix_role = normalize_role_token(body.get("fenix_role"))
        privilege_level = _privilege_level(body.get("privilege_level"), default=1)

        branch = normalize_branch_payload(body)
        if branch.is_empty and not is_promoter(fenix_role):
            raise ValidationError(BRANCH_REQUIRED_MESSAGE)

        credentials = self.generator.generate(
            full_name,
            username=body.get("username"),
            email=body.get("email"),
            password=body.get("password"),
        )

        base_payload = {
            "full_name": full_name,
            "fenix_role": fenix_role,
            "role": fenix_role,
            "privilege_level": privilege_level,
            "site_id": branch.site_id,
            "local": branch.local,
            "phone": _text(body.get("phone")),
            "vehicle_type": _text(body.get("vehicle_type")),
            "active": True,
            "password_hash": credentials.password_hash,
            "initial_password_plain_text": credentials.plaintext_password,
        }

        def attempt(current: Credentials) -> Dict[str, Any]:
            payload = {
                **base_payload,
                "id": str(uuid.uuid4()),
                "username": current.username,
                "email": current.email,
            }
            index_values = build_login_index_values(current.username, current.email)
            return self._write(self.repo.insert, payload, index_values)

        try:
            row = self.retry.run(
                attempt,
                credentials,
                lambda current: self.generator.regenerate(full_name, current),
            )
        except StoreError as exc:
            if exc.kind is FailureKind.UNIQUE_VIOLATION:
                raise self._conflict(credentials.username, credentials.email)
            self._raise_for_failure(exc.failure)

        logger.info("Account created", account_id=row["id"], username=row["username"], role=fenix_role)
        return _public(row)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_accounts(self, filters: AccountFilter) -> Dict[str, Any]:
        page = max(1, filters.page)
        page_size = min(self.max_page_size, max(1, filters.page_size))
        normalized = AccountFilter(
            q=_text(filters.q),
            role=(_text(filters.role) or "").upper() or None,
            branch=_text(filters.branch),
            active=filters.active,
            page=page,
            page_size=page_size,
        )

        try:
            rows, total = self.repo.get_with_filters(normalized, parse_branch_filter(normalized.branch))
        except StoreError as exc:
            raise PersistenceError(exc.failure.message or "List users failed")

        return {"data": self._with_site_names(rows), "page": page, "pageSize": page_size, "total": total}

    def _with_site_names(self, rows):
        site_ids = sorted({row["site_id"] for row in rows if row.get("site_id")})
        names: Dict[str, str] = {}
        if site_ids:
            try:
                names = self.repo.get_site_names(site_ids)
            except StoreError as exc:
                logger.warning("Site lookup failed", error=exc.failure.message)
        return [
            {**row, "site_name": names.get(row["site_id"]) if row.get("site_id") else None}
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Single account
    # ------------------------------------------------------------------

    def get_account(self, account_id: str) -> Dict[str, Any]:
        row = self.repo.get_summary(account_id)
        if row is None:
            raise EntityNotFoundException("Usuario no encontrado")
        return self._with_site_names([row])[0]

    def update_account(self, account_id: str, body: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        payload: Dict[str, Any] = {}
        username = None
        email = None

        if isinstance(body.get("full_name"), str):
            payload["full_name"] = body["full_name"].strip()

        if isinstance(body.get("username"), str):
            username = body["username"].strip().lower() or None
            if username:
                payload["username"] = username

        if isinstance(body.get("email"), str):
            email = body["email"].strip().lower() or None
            if email:
                payload["email"] = email

        raw_role = body.get("fenix_role") or body.get("role")
        if isinstance(raw_role, str) and raw_role.strip():
            payload["fenix_role"] = payload["role"] = normalize_role_token(raw_role)

        if body.get("privilege_level") is not None:
            level = _privilege_level(body["privilege_level"])
            if level is not None:
                payload["privilege_level"] = level

        if isinstance(body.get("active"), bool):
            payload["active"] = body["active"]

        if has_branch_fields(body):
            branch = normalize_branch_payload(body)
            payload["site_id"] = branch.site_id
            payload["local"] = branch.local

        for field in ("phone", "vehicle_type"):
            if field in body:
                value = body[field]
                payload[field] = (str(value).strip() or None) if value is not None else None

        if not payload:
            return None

        index_values = build_login_index_values(username, email)

        def execute(final_payload: Dict[str, Any]):
            row = self.repo.update(account_id, final_payload)
            if row is None:
                raise EntityNotFoundException("Usuario no encontrado")
            return row

        try:
            row = self._write(execute, payload, index_values)
        except StoreError as exc:
            if exc.kind is FailureKind.UNIQUE_VIOLATION:
                raise self._conflict(username, email, exclude_id=account_id)
            self._raise_for_failure(exc.failure, "Update failed")

        return _public(row)

    def toggle_active(self, account_id: str) -> bool:
        row = self.repo.get_summary(account_id)
        if row is None:
            raise EntityNotFoundException("Usuario no encontrado")

        active = not row["active"]
        try:
            self.repo.update(account_id, {"active": active})
        except StoreError as exc:
            self._raise_for_failure(exc.failure, "Action failed")
        logger.info("Account active toggled", account_id=account_id, active=active)
        return active

    def reset_password(self, account_id: str, new_password: Any) -> None:
        new_password = new_password.strip() if isinstance(new_password, str) else ""
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")

        payload = {
            "password_hash": self.generator.hash_password(new_password),
            "initial_password_plain_text": new_password,
        }

        def execute(final_payload: Dict[str, Any]):
            if not final_payload:
                # Neither password column exists on this schema
                raise PersistenceError("people has no password columns")
            row = self.repo.update(account_id, final_payload)
            if row is None:
                raise EntityNotFoundException("Usuario no encontrado")
            return row

        try:
            self._write(execute, payload, {})
        except StoreError as exc:
            self._raise_for_failure(exc.failure, "Action failed")
        logger.info("Account password reset", account_id=account_id)

    def delete_account(self, account_id: str) -> None:
        try:
            deleted = self.repo.delete(account_id)
        except StoreError as exc:
            self._raise_for_failure(exc.failure, "Delete failed")
        if not deleted:
            raise EntityNotFoundException("Usuario no encontrado")
        logger.info("Account deleted", account_id=account_id)
