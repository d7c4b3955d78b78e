"""Short-lived phone verification codes.

One outstanding 4-digit code per phone number, valid for five minutes
and consumed on first successful check.  Held in memory only.
"""

from __future__ import annotations

import hmac
import secrets
import time
from dataclasses import dataclass
from typing import Callable

import structlog

from src.services.messaging import mask_phone

logger = structlog.get_logger(__name__)

CODE_DIGITS = 4


@dataclass(slots=True, frozen=True)
class _PendingCode:
    code: str
    expires_at: float


class VerificationCodeStore:
    def __init__(
        self,
        ttl_seconds: float = 300.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._pending: dict[str, _PendingCode] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def issue(self, phone: str) -> str:
        """Generate a fresh code for *phone*, replacing any earlier one.

        Expired codes for every phone are purged first.
        """
        self.purge_expired()
        code = str(1000 + secrets.randbelow(9000))
        self._pending[phone] = _PendingCode(code, self._clock() + self._ttl)
        logger.info("verification.code_issued", phone=mask_phone(phone))
        return code

    def verify(self, phone: str, code: str) -> bool:
        """Check *code*; a matching unexpired code is consumed."""
        pending = self._pending.get(phone)
        if pending is None:
            return False
        if self._clock() >= pending.expires_at:
            del self._pending[phone]
            logger.info("verification.code_expired", phone=mask_phone(phone))
            return False
        code = code.strip()
        # compare_digest only accepts ASCII str
        if not (code.isascii() and code.isdigit()):
            return False
        if not hmac.compare_digest(pending.code, code):
            return False
        del self._pending[phone]
        logger.info("verification.phone_verified", phone=mask_phone(phone))
        return True

    def purge_expired(self) -> int:
        """Drop expired codes.  Returns the count removed."""
        now = self._clock()
        expired = [phone for phone, pending in self._pending.items() if now >= pending.expires_at]
        for phone in expired:
            del self._pending[phone]
        if expired:
            logger.info("verification.codes_purged", count=len(expired))
        return len(expired)

    def message_for(self, code: str) -> str:
        minutes = max(1, round(self._ttl / 60))
        return f"Your GramCare verification code is: {code}. It is valid for {minutes} minutes."
