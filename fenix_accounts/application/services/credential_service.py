"""Credential generator — username/email synthesis and initial password hashing."""

import re
import secrets
import unicodedata
from dataclasses import dataclass
from typing import Optional

from passlib.context import CryptContext

PASSWORD_ALPHABET = "ABCDEFGHJKLmnopqrstuvwxyz23456789$%*!@#"
GENERATED_PASSWORD_LENGTH = 10
MIN_PASSWORD_LENGTH = 6

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def fold_diacritics(value: str) -> str:
    """Drop combining marks after NFKD decomposition ('María' -> 'Maria')."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify_name(full_name: str) -> str:
    """'  María  Pérez ' -> 'maria.perez'."""
    folded = fold_diacritics(full_name.lower())
    return _NON_SLUG.sub(".", folded).strip(".")


def random_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def random_suffix() -> str:
    """Four lowercase hex characters."""
    return secrets.token_hex(2)


def _clean(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


@dataclass
class Credentials:
    username: str
    email: str
    plaintext_password: str
    password_hash: str
    # True when the caller supplied username or email (no regeneration allowed)
    explicit: bool = False


class CredentialGenerator:
    """Fills in missing username, email and password for a new account.

    The login domain and the hash cost are injected so the generator stays a
    pure function of its inputs (plus randomness).
    """

    def __init__(self, login_domain: str, rounds: int = 10):
        self.login_domain = login_domain.strip().lower()
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def synthesize(self, slug: str) -> tuple[str, str]:
        """Fresh `<slug>_<hex4>` username and its derived email."""
        username = f"{slug}_{random_suffix()}".lower()
        return username, f"{username}@{self.login_domain}"

    def generate(
        self,
        full_name: str,
        username=None,
        email=None,
        password=None,
    ) -> Credentials:
        explicit_username = _clean(username)
        explicit_email = _clean(email)

        slug = slugify_name(full_name)
        final_username = explicit_username or self.synthesize(slug)[0]
        final_email = explicit_email or f"{final_username}@{self.login_domain}"

        if isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH:
            plain = password
        else:
            plain = random_password()

        return Credentials(
            username=final_username,
            email=final_email,
            plaintext_password=plain,
            password_hash=self.hash_password(plain),
            explicit=bool(explicit_username or explicit_email),
        )

    def regenerate(self, full_name: str, credentials: Credentials) -> Credentials:
        """New random suffix and re-derived email; the password is kept."""
        username, email = self.synthesize(slugify_name(full_name))
        return Credentials(
            username=username,
            email=email,
            plaintext_password=credentials.plaintext_password,
            password_hash=credentials.password_hash,
            explicit=credentials.explicit,
        )
