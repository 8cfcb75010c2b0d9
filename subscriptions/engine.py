"""
Proxy engine collaborator.

The manager never looks inside a document. It only needs to know whether a
candidate is acceptable (`parse_and_validate`) and how to hand an accepted one
to the engine (`ClashEngine.apply`).
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lib.data import Settings
from lib.models import Controller

from .constants import BUILTIN_TARGETS
from .errors import ApplyError, DocumentRejected

logger = logging.getLogger(__name__)

MODES = {"rule", "global", "direct"}


def scalar_to_str(value: Any) -> Any:
    """YAML reads unquoted names like `1` or `1.5` as numbers, the engine treats them as strings"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class Proxy(BaseModel):
    """Proxy model (only the fields the gate checks)"""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str

    @field_validator("name", mode="before")
    @classmethod
    def numeric_name(cls, value: Any) -> Any:
        return scalar_to_str(value)


class ProxyGroup(BaseModel):
    """Proxy group model"""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str
    proxies: List[str] = []
    """Members by name"""
    use: List[str] = []
    """Proxy providers feeding the group"""

    @field_validator("name", mode="before")
    @classmethod
    def numeric_name(cls, value: Any) -> Any:
        return scalar_to_str(value)

    @field_validator("proxies", "use", mode="before")
    @classmethod
    def numeric_members(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [scalar_to_str(v) for v in value]
        return value


class EngineConfig(BaseModel):
    """The parts of an engine document that are validated before promotion"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    port: Optional[int] = Field(default=None, ge=0, le=65535)
    socks_port: Optional[int] = Field(default=None, alias="socks-port", ge=0, le=65535)
    mixed_port: Optional[int] = Field(default=None, alias="mixed-port", ge=0, le=65535)
    redir_port: Optional[int] = Field(default=None, alias="redir-port", ge=0, le=65535)
    mode: Optional[str] = None
    proxies: List[Proxy] = []
    proxy_groups: List[ProxyGroup] = Field(default=[], alias="proxy-groups")
    rules: List[str] = []

    @field_validator("proxies", "proxy_groups", "rules", mode="before")
    @classmethod
    def none_list(cls, value: Optional[list]) -> list:
        return value or []

    @field_validator("mode")
    @classmethod
    def check_mode(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.lower() not in MODES:
            raise ValueError(f"unknown mode {value!r}, expected one of {', '.join(sorted(MODES))}")
        return value


def rule_target(rule: str) -> str:
    """The policy a rule sends traffic to: `MATCH,TARGET` or `TYPE,VALUE,TARGET[,option]`"""
    parts = [part.strip() for part in rule.split(",")]
    if parts[0].upper() in ("MATCH", "FINAL"):
        return parts[1] if len(parts) > 1 else ""
    return parts[2] if len(parts) > 2 else ""


def check_references(config: EngineConfig) -> List[str]:
    """Semantic checks, returns a list of errors"""
    errors = []
    names: set[str] = set()

    for item in [*config.proxies, *config.proxy_groups]:
        if item.name in names:
            errors.append(f"duplicate proxy or group name: {item.name}")
        names.add(item.name)

    known = names | BUILTIN_TARGETS
    for group in config.proxy_groups:
        if not group.proxies and not group.use:
            errors.append(f"group {group.name} has no proxies and no providers")
        for member in group.proxies:
            if member not in known:
                errors.append(f"group {group.name} references unknown proxy {member}")

    for rule in config.rules:
        target = rule_target(rule)
        if not target:
            errors.append(f"rule has no target: {rule}")
        elif target not in known:
            errors.append(f"rule targets unknown proxy or group {target}: {rule}")

    return errors


def parse_and_validate(path: Path) -> EngineConfig:
    """Parse a document and check it is usable by the engine.

    Raises:
        DocumentRejected: On any parse or semantic error
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise DocumentRejected(f"cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise DocumentRejected(f"{path} is not a mapping")

    try:
        config = EngineConfig(**data)
    except (TypeError, ValidationError) as e:
        raise DocumentRejected(f"invalid document {path}: {e}") from e

    errors = check_references(config)
    if errors:
        raise DocumentRejected(f"invalid document {path}: " + "; ".join(errors))
    return config


def load_overrides(paths: List[Path]) -> Dict[str, Any]:
    """Top-level keys from the override files, later files win"""
    overrides: Dict[str, Any] = {}
    for path in paths:
        if not path.exists():
            continue
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: not a mapping", path)
            continue
        logger.debug("Applying %d override keys from %s", len(data), path.name)
        overrides.update(data)
    return overrides


class ClashEngine:
    """Hands promoted documents to a running Clash instance."""

    def __init__(self, settings: Settings, controller: Optional[Controller] = None, session=None):
        self.settings = settings
        self.controller = controller
        self.session = session or requests.Session()

    def validate(self, path: Path) -> EngineConfig:
        return parse_and_validate(path)

    def render(self, path: Path) -> Path:
        """Write the runtime document: the active document with general/dns overrides on top"""
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
        document.update(load_overrides(self.settings.override_files))

        runtime = self.settings.runtime_config
        runtime.parent.mkdir(parents=True, exist_ok=True)
        tmp = runtime.with_name(runtime.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
        os.replace(tmp, runtime)
        return runtime

    def apply(self, path: Path) -> None:
        """
        Render `path` into the runtime document and ask the controller to reload it.

        Raises:
            ApplyError: When rendering or the reload request fails
        """
        try:
            runtime = self.render(path)
        except (OSError, yaml.YAMLError) as e:
            raise ApplyError(f"cannot render {path}: {e}") from e
        logger.info("Runtime config written: %s", runtime)

        if not self.controller:
            return

        headers = {}
        if self.controller.secret:
            headers["Authorization"] = f"Bearer {self.controller.secret}"
        url = self.controller.url.rstrip("/") + "/configs"
        try:
            response = self.session.put(
                url, params={"force": "true"}, json={"path": str(runtime)}, headers=headers, timeout=10
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise ApplyError(f"controller reload failed: {e}") from e
        logger.info("Engine reloaded via %s", url)
