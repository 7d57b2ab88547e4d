"""Secondary sink mirroring written lines to stdout or stderr."""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import TextIO

logger = logging.getLogger(__name__)


class Tee(str, Enum):
    NONE = "none"
    STDOUT = "stdout"
    STDERR = "stderr"


class TeeSink:
    """Best-effort mirror. Failures are recorded in ``errors``, never raised."""

    def __init__(self, tee: Tee | str = Tee.NONE, stream: TextIO | None = None) -> None:
        self.tee = Tee(tee)
        self._stream = stream
        self.errors: list[Exception] = []

    @property
    def stream(self) -> TextIO | None:
        if self.tee is Tee.NONE:
            return None
        if self._stream is not None:
            return self._stream
        # resolved on each write so redirected sys streams are honoured
        if self.tee is Tee.STDOUT:
            return sys.stdout
        if self.tee is Tee.STDERR:
            return sys.stderr
        return None

    def write_line(self, text: str) -> bool:
        return self.write(text + "\n")

    def write(self, text: str) -> bool:
        stream = self.stream
        if stream is None:
            return True
        try:
            stream.write(text)
            stream.flush()
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed stream
            if not self.errors:
                logger.warning("Tee to %s failed: %s", self.tee.value, exc)
            self.errors.append(exc)
            return False
        return True
