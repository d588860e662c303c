"""Role tokens and the storage-level constraints that reference them."""

ALLOWED_ROLES = ("ADMIN", "GERENCIA", "COORDINADOR", "LIDER", "ASESOR", "PROMOTOR", "LOGISTICA")

PROMOTER_ROLE = "PROMOTOR"
DEFAULT_ROLE = "USER"

# Named check constraints on the people table
PEOPLE_SITE_CHECK = "people_site_required_except_promotor"
PEOPLE_ROLE_CHECK = "people_role_check"


def normalize_role_token(raw) -> str:
    """Upper-case and trim a role token; empty input falls back to DEFAULT_ROLE."""
    token = str(raw if raw is not None else "").strip().upper()
    return token or DEFAULT_ROLE


def is_promoter(role: str | None) -> bool:
    """Promoters (PROMOTOR / PROMOTORA) are the only accounts allowed without a branch."""
    return bool(role) and role.strip().upper().startswith(PROMOTER_ROLE)
