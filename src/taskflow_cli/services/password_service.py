"""Password digests, strength scoring and sign-up validation."""

from __future__ import annotations

import hashlib
import hmac
import re

from taskflow_cli.models import PasswordStrength, RegistrationForm

PASSWORD_SALT = "taskflow_salt"
MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 2
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

STRENGTH_LABELS = {
    0: "Very Weak",
    1: "Very Weak",
    2: "Weak",
    3: "Fair",
    4: "Good",
    5: "Strong",
}


def hash_password(password: str) -> str:
    """Return the salted SHA-256 digest of a password as lowercase hex."""
    data = (password + PASSWORD_SALT).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def verify_password(password: str, digest: str) -> bool:
    """Check a password against a stored digest."""
    return hmac.compare_digest(hash_password(password), digest)


def matches_legacy_digest(password: str, stored: str) -> bool:
    """Check a password against a digest in an older encoding.

    Older exports stored the hex digest upper-cased or padded with
    whitespace; the digest is recomputed and compared to the normalized
    stored value.
    """
    normalized = stored.strip().lower()
    return hmac.compare_digest(hash_password(password), normalized)


def evaluate_strength(password: str) -> PasswordStrength:
    """Score a password against five rules.

    Rules: minimum length, an uppercase letter, a lowercase letter, a digit
    and a special character. Each satisfied rule adds one point.
    """
    rules = [
        (len(password) >= MIN_PASSWORD_LENGTH, f"At least {MIN_PASSWORD_LENGTH} characters"),
        (re.search(r"[A-Z]", password) is not None, "One uppercase letter"),
        (re.search(r"[a-z]", password) is not None, "One lowercase letter"),
        (re.search(r"\d", password) is not None, "One number"),
        (any(ch in SPECIAL_CHARACTERS for ch in password), "One special character"),
    ]
    score = sum(1 for passed, _ in rules if passed)
    feedback = [message for passed, message in rules if not passed]
    return PasswordStrength(
        score=score,
        feedback=feedback,
        label=STRENGTH_LABELS[score],
        length_ok=len(password) >= MIN_PASSWORD_LENGTH,
    )


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email.strip()) is not None


def validate_registration(form: RegistrationForm) -> list[str]:
    """Return the problems with a sign-up form; empty when it is valid."""
    problems = []
    if len(form.first_name.strip()) < MIN_NAME_LENGTH:
        problems.append(f"First name must be at least {MIN_NAME_LENGTH} characters")
    if len(form.last_name.strip()) < MIN_NAME_LENGTH:
        problems.append(f"Last name must be at least {MIN_NAME_LENGTH} characters")
    if not is_valid_email(form.email):
        problems.append("Email address is not valid")
    if len(form.password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if form.password != form.confirm_password:
        problems.append("Passwords do not match")
    if not form.agree_terms:
        problems.append("You must accept the terms of service")
    return problems
