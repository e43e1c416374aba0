"""Referral code generation."""

import hashlib
import re

from linkage.domain.value import ReferralCode

from .base import Service

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class ReferralCodeGenerator(Service):
    """Derive a stable referral code from a profile seed.

    The seed is the account email when the provider shares one, otherwise the
    provider handle. Collisions are not retried here; the directory's unique
    constraint on referral codes rejects them.
    """

    def __init__(self, prefix_length: int = 3, digest_length: int = 5) -> None:
        self.prefix_length = prefix_length
        self.digest_length = digest_length

    def generate(self, seed: str) -> ReferralCode:
        """Generate the referral code for a seed.

        Args:
            seed: Email or handle of the new account

        Returns:
            Upper-cased referral code, identical for identical seeds

        Raises:
            ValueError: If the seed is empty
        """
        if not seed:
            raise ValueError("Referral code seed must not be empty")

        local_part = seed.split("@", 1)[0]
        prefix = _NON_ALNUM.sub("", local_part)[: self.prefix_length]
        digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()[: self.digest_length]
        return ReferralCode(f"{prefix}{digest}".upper())
