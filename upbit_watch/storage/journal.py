"""Append-only daily event journal."""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from loguru import logger


class EventJournal:
    """Writes one human-readable line per entry to ``<logs_dir>/YYYY-MM-DD.txt``."""

    def __init__(self, logs_dir: str = "logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def today() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d")

    def today_file(self) -> Path:
        return self.logs_dir / f"{self.today()}.txt"

    def record(self, text: str) -> None:
        """Append a timestamped line and mirror it to the application log."""
        timestamp = datetime.now(timezone.utc).isoformat()
        line = f"[{timestamp}] {text}"
        try:
            with open(self.today_file(), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.error(f"Failed to write journal line: {e}")
        logger.info(text)

    def tail(self, lines: int = 200) -> Optional[List[str]]:
        """Last lines of today's journal, or None when no file exists yet."""
        path = self.today_file()
        if not path.exists():
            return None
        content = path.read_text(encoding="utf-8").strip()
        if not content:
            return []
        return content.split("\n")[-lines:]
