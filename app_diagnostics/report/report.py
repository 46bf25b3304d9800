"""The compiled diagnostics report."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

HTML_MIME_TYPE = "text/html"


@dataclass(frozen=True)
class DiagnosticsReport:
    """A compiled report ready to be attached, shared or saved."""

    filename: str
    data: bytes
    mime_type: str = HTML_MIME_TYPE

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")

    def save(self, directory: Union[str, Path]) -> Path:
        """Write the report into ``directory``, creating it if needed.

        Returns:
            Path of the written file

        Raises:
            OSError: If the directory or file cannot be written
        """
        folder = Path(directory).expanduser()
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / self.filename
        path.write_bytes(self.data)
        logger.info(f"Diagnostics report saved to {path}")
        return path
