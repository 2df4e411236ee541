"""
license.py

Responsibility: Ask the license API whether a key is known.

A single GET is issued; the endpoint answers with a JSON array of matching records.
Every failure mode is folded into the returned result so callers can fail closed
while still reporting the real cause.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import requests

logger = logging.getLogger(__name__)


class LicenseStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class LicenseCheckResult:
    status: LicenseStatus
    detail: str = ""
    cause: BaseException | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is LicenseStatus.VALID


def check_license(key: str, *, endpoint: str, token: str, timeout: float = 10.0) -> LicenseCheckResult:
    """
    Validate `key` against `endpoint`. The caller is expected to reject empty keys.
    """
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
    try:
        r = requests.get(endpoint, params={"key": key}, headers=headers, timeout=timeout)
        r.raise_for_status()
        records = r.json()
    except ValueError as e:
        # requests' JSONDecodeError is both a ValueError and a RequestException.
        return LicenseCheckResult(LicenseStatus.TRANSPORT_ERROR, f"error parsing response: {e}", e)
    except requests.RequestException as e:
        logger.debug("License request failed: %s", e)
        return LicenseCheckResult(LicenseStatus.TRANSPORT_ERROR, f"error making request: {e}", e)

    if not isinstance(records, list):
        return LicenseCheckResult(
            LicenseStatus.TRANSPORT_ERROR,
            f"error parsing response: expected a JSON array, got {type(records).__name__}",
        )
    if not records:
        return LicenseCheckResult(LicenseStatus.INVALID, "invalid license key")
    logger.debug("License endpoint returned %d matching record(s)", len(records))
    return LicenseCheckResult(LicenseStatus.VALID)
