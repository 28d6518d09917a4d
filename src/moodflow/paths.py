"""Where the mood log lives, and which setting put it there."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import DATA_ENV_VAR

CONFIG_DIR = Path("~/.config/moodflow")


@dataclass(frozen=True)
class DataLocation:
    path: Path
    source: str  # "arg" | "env" | "profile" | "default"
    profile: str | None = None

    @property
    def reason(self) -> str:
        if self.source == "arg":
            return "because you passed --data"
        if self.source == "env":
            return f"because {DATA_ENV_VAR} is set"
        if self.source == "profile":
            return f"because you used --profile {self.profile!r}"
        return "default XDG config location"


def default_data_path(profile: str | None = None) -> Path:
    return (CONFIG_DIR / f"{profile or 'data'}.json").expanduser().resolve()


def locate_data(data_arg: str | None = None, profile: str | None = None) -> DataLocation:
    """--data wins, then $MOODFLOW_DATA, then the per-profile file under ~/.config."""
    if data_arg:
        return DataLocation(Path(data_arg).expanduser().resolve(), "arg")
    env = os.environ.get(DATA_ENV_VAR)
    if env:
        return DataLocation(Path(env).expanduser().resolve(), "env")
    return DataLocation(default_data_path(profile), "profile" if profile else "default", profile)
