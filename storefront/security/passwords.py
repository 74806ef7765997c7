"""Password hashing with scrypt"""

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

_N = 2**14
_R = 8
_P = 1
_LENGTH = 32


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=_LENGTH, n=_N, r=_R, p=_P)


def hash_password(password: str) -> str:
    """Return "scrypt$<salt>$<key>" (base64 parts)"""
    salt = os.urandom(16)
    key = _kdf(salt).derive(password.encode())
    return "scrypt${}${}".format(
        base64.b64encode(salt).decode(),
        base64.b64encode(key).decode(),
    )


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, salt_b64, key_b64 = password_hash.split("$")
    except ValueError:
        return False
    if scheme != "scrypt":
        return False

    try:
        # Scrypt.verify compares in constant time
        _kdf(base64.b64decode(salt_b64)).verify(password.encode(), base64.b64decode(key_b64))
    except InvalidKey:
        return False
    return True
