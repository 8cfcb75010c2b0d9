"""Home directory layout and config.yaml loading"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

from lib.models import Config
from subscriptions.errors import ConfigError

logger = logging.getLogger(__name__)

HOME_DIR_ENV = "SUBKEEPER_HOME_DIR"
DEFAULT_HOME_DIR = "data"

CONFIG_FILE = "config.yaml"
SUBSCRIBE_DIR = "subscribe"
ENGINE_DIR = "clash"
OVERRIDE_FILES = ("general.yaml", "dns.yaml")


def home_dir_from_env() -> str:
    """Home directory from SUBKEEPER_HOME_DIR (a .env file in the working directory counts), else `data`"""
    load_dotenv()
    return os.environ.get(HOME_DIR_ENV) or DEFAULT_HOME_DIR


class Settings(BaseModel):
    """Resolved paths for one home directory.

    Passed to every component at construction so nothing looks the home
    directory up on its own.
    """

    model_config = ConfigDict(frozen=True)

    home_dir: Path

    @classmethod
    def from_home(cls, home_dir: Optional[str] = None) -> "Settings":
        return cls(home_dir=Path(home_dir or home_dir_from_env()).resolve())

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILE

    @property
    def subscribe_dir(self) -> Path:
        return self.home_dir / SUBSCRIBE_DIR

    @property
    def engine_dir(self) -> Path:
        return self.home_dir / ENGINE_DIR

    @property
    def runtime_config(self) -> Path:
        """The merged document handed to the engine"""
        return self.engine_dir / CONFIG_FILE

    @property
    def override_files(self) -> list[Path]:
        return [self.home_dir / name for name in OVERRIDE_FILES]

    def active_path(self, name: str) -> Path:
        return self.subscribe_dir / f"{name}.yaml"

    def staging_path(self, name: str) -> Path:
        return self.subscribe_dir / f"{name}.yaml.update"


def load_config(settings: Settings) -> Config:
    """Load and validate config.yaml

    Raises:
        ConfigError: When the file is missing, is not valid YAML or does not match the model
    """
    config_file = settings.config_file
    if not config_file.exists():
        raise ConfigError(f"Config not found: {config_file}")

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {config_file}, got {type(data).__name__}")

    try:
        config = Config(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_file}: {e}") from e

    logger.debug("Loaded %d subscriptions from %s", len(config.subscribe), config_file)
    return config


def last_updated(settings: Settings, name: str) -> Optional[datetime]:
    """Modification time of a subscription's active document, None when it does not exist"""
    try:
        return datetime.fromtimestamp(settings.active_path(name).stat().st_mtime).astimezone()
    except FileNotFoundError:
        return None
