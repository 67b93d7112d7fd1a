"""Key generation and display masking.

Format:  {prefix}_XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX
Symbols: A-Z a-z 0-9, drawn with the secrets module (CSPRNG)
Mask:    first 8 characters, 32 bullets, last 4 characters
"""

import re
import secrets
import string

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
GROUP_LENGTHS = (8, 4, 4, 4, 12)
MASK_GLYPH = "•"
MASK_WIDTH = 32
VISIBLE_HEAD = 8
VISIBLE_TAIL = 4


class KeyCodec:
    """Generates new secrets and masks existing ones for display."""

    def __init__(self, prefix: str = "nani"):
        if not prefix or not prefix.isalnum():
            raise ValueError(f"Key prefix must be a non-empty alphanumeric string, got {prefix!r}")
        self.prefix = prefix
        groups = "-".join(f"[A-Za-z0-9]{{{n}}}" for n in GROUP_LENGTHS)
        self._pattern = re.compile(rf"^{re.escape(prefix)}_{groups}$")

    def generate(self) -> str:
        groups = (
            "".join(secrets.choice(ALPHABET) for _ in range(length))
            for length in GROUP_LENGTHS
        )
        return f"{self.prefix}_" + "-".join(groups)

    def is_well_formed(self, secret: str) -> bool:
        return bool(secret) and self._pattern.match(secret) is not None

    @staticmethod
    def mask(secret: str) -> str:
        """
        Mask a raw secret for display.

        Only raw secrets are ever masked; anything shorter than the visible
        head + tail would leak or overlap, so it is rejected.
        """
        if secret is None or len(secret) < VISIBLE_HEAD + VISIBLE_TAIL:
            raise ValueError("Cannot mask a secret shorter than 12 characters")
        return secret[:VISIBLE_HEAD] + MASK_GLYPH * MASK_WIDTH + secret[-VISIBLE_TAIL:]
