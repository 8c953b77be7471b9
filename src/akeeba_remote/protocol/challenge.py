"""Challenge string generation for the plaintext (Raw) encapsulation.

The JSON API authenticates unencrypted requests with a challenge of the form
``salt:md5(salt + secret_key)``.  For example, with the salt ``foo`` and the
secret key ``bar`` the challenge is
``foo:3858f62230ac3c915f300c664312c63f``.
"""

from __future__ import annotations

import hashlib
import random
import string
import time
from typing import Optional

SALT_ALPHABET = string.ascii_letters + string.digits
DEFAULT_SALT_LENGTH = 32


def get_salt(length: int = DEFAULT_SALT_LENGTH) -> str:
    """Return a random alphanumeric salt that does not start with a digit.

    The random source is reseeded from the clock on every call.  Candidates
    whose first character is a digit are discarded and drawn again.

    Args:
        length: Number of characters in the salt.

    Returns:
        The salt string.
    """
    rng = random.Random(time.time_ns())
    while True:
        salt = "".join(rng.choice(SALT_ALPHABET) for _ in range(length))
        if not salt[:1].isdigit():
            return salt


def get_challenge(secret_key: str, salt: Optional[str] = None) -> str:
    """Build the challenge string for *secret_key*.

    Args:
        secret_key: The site's front-end secret key.  Surrounding whitespace
            is ignored.
        salt: Salt to use.  A fresh one is generated when omitted.

    Returns:
        ``"<salt>:<md5 hex digest>"``.
    """
    if salt is None:
        salt = get_salt()
    digest = hashlib.md5((salt + secret_key.strip()).encode("utf-8")).hexdigest()
    return f"{salt}:{digest}"
