"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from omnifind.scan.volumes import list_scan_roots


@dataclass(slots=True)
class AppConfig:
    roots: List[Path] | None = None
    channel_capacity: int = 2048
    progress_interval: float = 0.5
    event_buffer_size: int = 1000

    def __post_init__(self) -> None:
        if self.channel_capacity < 1:
            raise ValueError("channel_capacity must be positive")
        if self.progress_interval < 0:
            raise ValueError("progress_interval must not be negative")

    def resolve_roots(self, base_dir: Path | None = None) -> List[Path]:
        """Return explicit roots made absolute, or the machine's volumes.

        Raises ``NoVolumesFound`` when enumeration yields nothing.
        """
        if not self.roots:
            return list_scan_roots()
        resolved = []
        for root in self.roots:
            root = Path(root).expanduser()
            if not root.is_absolute():
                root = (base_dir or Path.cwd()) / root
            resolved.append(root)
        return resolved
