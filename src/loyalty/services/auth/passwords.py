"""Password hashing with bcrypt."""

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(plaintext: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return the bcrypt hash of ``plaintext``."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plaintext.encode(), salt).decode()


def verify_password(plaintext: str, password_hash: str) -> bool:
    """Check ``plaintext`` against a stored hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(plaintext.encode(), password_hash.encode())
    except ValueError:
        return False
