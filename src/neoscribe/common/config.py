from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


def _default_data_dir() -> Path:
    return Path(os.environ.get("NEOSCRIBE_DATA_DIR", "data"))


class AppConfig(BaseModel):
    data_dir: Path = Field(default_factory=_default_data_dir)
    trecento_codes: str = "neumcode_trecento.csv"
    chant_codes: str = "neumcode_chant.csv"
    source_key: str = "sourcekey.tab"
    encoder: str = "Unknown"
    encoding: str = "latin-1"
    out_dir: Path | None = None

    def table_path(self, name: str) -> Path:
        p = Path(name)
        return p if p.is_absolute() else self.data_dir / p


def load_yaml(path: str | Path) -> AppConfig:
    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return AppConfig(**data)
