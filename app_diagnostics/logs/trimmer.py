"""Removes the oldest whole fragments from log content."""

import logging
import re
from dataclasses import dataclass
from typing import List

from app_diagnostics.utils.errors import LogTrimError
from .entries import FRAGMENT_PATTERN

logger = logging.getLogger(__name__)

# Byte offsets are needed to honour a byte size limit
FRAGMENT_BYTES_PATTERN = re.compile(FRAGMENT_PATTERN.pattern.encode("utf-8"), re.DOTALL)


@dataclass
class TrimResult:
    """Outcome of one trim pass."""

    data: bytes
    removed: int
    remaining: int


@dataclass(frozen=True)
class LogTrimmer:
    """Trims whole fragments, oldest first.

    At least ``batch_size`` fragments are removed per pass, and more while
    the content is still above ``maximum_size``. The newest fragment is
    never removed. Bytes preceding the first kept fragment that do not form
    a fragment are dropped with the removed span.
    """

    batch_size: int = 10

    def fragment_offsets(self, data: bytes) -> List[int]:
        return [match.start() for match in FRAGMENT_BYTES_PATTERN.finditer(data)]

    def trim(self, data: bytes, maximum_size: int) -> TrimResult:
        if not data:
            return TrimResult(data=data, removed=0, remaining=0)

        starts = self.fragment_offsets(data)
        if not starts:
            raise LogTrimError("Trimming the log failed: no log fragments found")

        removable = len(starts) - 1
        count = min(self.batch_size, removable)
        while count < removable and len(data) - starts[count] > maximum_size:
            count += 1

        trimmed = data[starts[count]:]
        if count:
            logger.debug(
                f"Trimmed {count} log fragment(s), {len(data) - len(trimmed)} bytes"
            )
        return TrimResult(data=trimmed, removed=count, remaining=len(starts) - count)
