"""Local CLI configuration (token and cached user)."""

import json
import os
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel

CONFIG_DIR_ENV = "NTANDO_CONFIG_DIR"
CONFIG_FILE_NAME = "config.json"


def config_path() -> Path:
    directory = os.environ.get(CONFIG_DIR_ENV) or typer.get_app_dir("ntando")
    return Path(directory) / CONFIG_FILE_NAME


class CliConfig(BaseModel):
    """What ``ntando login`` remembers between invocations."""

    token: str | None = None
    user: dict[str, Any] | None = None

    @classmethod
    def load(cls) -> "CliConfig":
        path = config_path()
        if not path.exists():
            return cls()
        return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))

    def save(self) -> None:
        path = config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    @staticmethod
    def clear() -> None:
        config_path().unlink(missing_ok=True)

    @property
    def logged_in(self) -> bool:
        return bool(self.token)
