"""Job identifiers.

A job id is `{app_name}-{created_ms}`. Parsing strips the trailing
timestamp segment rather than splitting on the first hyphen, so app names
that contain hyphens (`my-app`, `v1-2`) round-trip intact.
"""

import re
import time
from dataclasses import dataclass
from typing import ClassVar, Optional


class InvalidJobIdError(ValueError):
    """Raised when a string is not a well-formed job id."""


@dataclass(frozen=True)
class JobId:
    """Correlation token linking a deploy request to later status/log queries.

    Attributes:
        app_name: Application the job deploys.
        created_ms: Creation time in epoch milliseconds.
    """

    app_name: str
    created_ms: int

    # Epoch millis have had 13 digits since 2001; 10 keeps seconds-based ids parseable.
    PATTERN: ClassVar[re.Pattern] = re.compile(r"^(?P<app>.+)-(?P<ts>\d{10,})$")

    @classmethod
    def generate(cls, app_name: str, now_ms: Optional[int] = None) -> "JobId":
        """Create a job id for `app_name` stamped with the current time."""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return cls(app_name=app_name, created_ms=now_ms)

    @classmethod
    def parse(cls, value: str) -> "JobId":
        """Recover app name and timestamp from a job id string.

        Raises:
            InvalidJobIdError: If the value has no trailing timestamp segment.
        """
        match = cls.PATTERN.match(value or "")
        if not match:
            raise InvalidJobIdError(f"Invalid job id: {value!r}")
        return cls(app_name=match.group("app"), created_ms=int(match.group("ts")))

    def __str__(self) -> str:
        return f"{self.app_name}-{self.created_ms}"
