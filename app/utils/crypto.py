"""
Password hashing for staff and portal accounts.

New hashes are bcrypt. Werkzeug (scrypt/pbkdf2) hashes are still accepted
by ``verify_password`` so accounts seeded through
``werkzeug.security.generate_password_hash`` can log in.

The bcrypt cost factor comes from ``BCRYPT_ROUNDS`` when an application
context is active (the test config lowers it), else 12.
"""

import bcrypt
from flask import current_app, has_app_context
from werkzeug.security import check_password_hash

DEFAULT_ROUNDS = 12


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))
    return DEFAULT_ROUNDS


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt(rounds=_rounds())
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """True when ``plain_password`` matches a bcrypt or werkzeug hash."""
    if not password_hash or plain_password is None:
        return False

    if password_hash.startswith(("$2b$", "$2a$", "$2y$")):
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))

    return check_password_hash(password_hash, plain_password)
