"""In-memory OTP store with expiry — keyed by country code and phone number."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from mirror_chat.errors import OtpExpired, OtpMismatch, OtpNotFound, ValidationError

logger = logging.getLogger(__name__)

# OTP validity period in seconds
OTP_TTL_SECONDS = 300  # 5 minutes


@dataclass
class OtpRecord:
    code: str
    expires_at: float


def otp_key(country_code: str, phone_number: str) -> str:
    return f"{country_code}|{phone_number}"


class OTPStore:
    """Maps ``countryCode|phoneNumber → OtpRecord``.

    At most one live code exists per key: requesting again overwrites the
    previous code. Expired records are removed lazily, on the verification
    attempt that discovers them.
    """

    def __init__(
        self,
        ttl_seconds: float = OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self._store: dict[str, OtpRecord] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._rng = rng or random.Random()

    def request(self, country_code: str, phone_number: str) -> str:
        """Generate and store a 6-digit OTP for the phone number."""
        if not country_code or not phone_number:
            raise ValidationError("Missing countryCode or phoneNumber")

        key = otp_key(country_code, phone_number)
        code = str(self._rng.randint(100000, 999999))
        self._store[key] = OtpRecord(code=code, expires_at=self._clock() + self._ttl)
        # Demo stand-in for SMS delivery
        logger.info("[OTP SENT] %s -> %s (expires in %d seconds)", key, code, self._ttl)
        return code

    def peek(self, country_code: str, phone_number: str, code: str) -> OtpRecord:
        """Check *code* without consuming it.

        Raises ``OtpNotFound``, ``OtpExpired`` (and drops the record) or
        ``OtpMismatch``.
        """
        key = otp_key(country_code, phone_number)
        record = self._store.get(key)
        if record is None:
            raise OtpNotFound()
        if self._clock() > record.expires_at:
            self._store.pop(key, None)
            logger.info("OTP expired for %s", key)
            raise OtpExpired()
        if code != record.code:
            raise OtpMismatch()
        return record

    def discard(self, country_code: str, phone_number: str) -> None:
        self._store.pop(otp_key(country_code, phone_number), None)

    def verify(self, country_code: str, phone_number: str, code: str) -> None:
        """Check *code* and consume it on success (single use)."""
        self.peek(country_code, phone_number, code)
        self.discard(country_code, phone_number)

    def __len__(self) -> int:
        return len(self._store)
