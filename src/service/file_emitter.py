import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class FileEmitter(ABC):
    """Hands generated content to the user (download, directory, ...)"""

    @abstractmethod
    def emit_file(self, content: str, file_name: str, mime_type: str) -> None: ...


class DirectoryFileEmitter(FileEmitter):
    """Writes every emitted file into one output directory"""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def emit_file(self, content: str, file_name: str, mime_type: str) -> None:
        # Only the base name is used; files always land in output_dir
        target = self.output_dir / Path(file_name).name
        self.output_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.info(f"[EMIT] Wrote {target} ({mime_type}, {len(content)} chars)")
