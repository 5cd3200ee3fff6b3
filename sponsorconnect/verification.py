"""
Verification codes users paste into their platform bio to prove ownership.
"""

from __future__ import annotations

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def generate_verification_code(length: int = CODE_LENGTH) -> str:
    # Codes are never used as keys, so collisions are harmless.
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
