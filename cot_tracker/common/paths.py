from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def series_file_stem(name: str) -> str:
    """File-system safe stem for a series name; "" when nothing usable is left."""
    return _UNSAFE_FILE_CHARS.sub("_", name.strip()).strip("_")


@dataclass(frozen=True)
class ProjectPaths:
    root: Path

    @property
    def configs(self) -> Path: return self.root / "configs"
    @property
    def markets_config(self) -> Path: return self.configs / "markets.yaml"
    @property
    def data(self) -> Path: return self.root / "data"
    @property
    def series(self) -> Path: return self.data / "series"

    def resolve(self, p: str | Path) -> Path:
        p = Path(p)
        return p if p.is_absolute() else self.root / p
