"""ACL configuration loader with Pydantic v2 validation.

Loads and validates an ``acl.yaml`` file into a typed :class:`AclConfig`
object.  The config replaces process-wide state: it is built once at
start-up and handed to :meth:`directory_acl.service.AclService.from_config`.
Unknown keys are allowed so newer files still load.

Example
-------
>>> config = ConfigLoader().load_string("store: {path: /etc/acl/LDAP.ini}")
>>> config.store.path
PosixPath('/etc/acl/LDAP.ini')
>>> config.policy.continue_group_scan
True
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from directory_acl.engine.authorizer import AuthorizationPolicy

logger = logging.getLogger(__name__)


class StoreConfig(BaseModel):
    """Location of the ACL store file."""

    model_config = {"extra": "allow"}

    path: Path = Field(default=Path("./LDAP.ini"))


class PolicyConfig(BaseModel):
    """Precedence switches for the authorization engine."""

    model_config = {"extra": "allow"}

    direct_mismatch_terminal: bool = Field(default=False)
    continue_group_scan: bool = Field(default=True)
    group_fallback: bool = Field(default=True)

    def to_policy(self) -> AuthorizationPolicy:
        return AuthorizationPolicy(
            direct_mismatch_terminal=self.direct_mismatch_terminal,
            continue_group_scan=self.continue_group_scan,
            group_fallback=self.group_fallback,
        )


class DirectoryConfig(BaseModel):
    """Directory connection settings."""

    model_config = {"extra": "allow"}

    port: int = Field(default=389, ge=1, le=65535)
    probe_timeout_seconds: float = Field(default=3.0, gt=0)
    use_ssl: bool = Field(default=False)


class AuditConfig(BaseModel):
    """Configuration for the decision audit trail."""

    model_config = {"extra": "allow"}

    enabled: bool = Field(default=False)
    log_path: Path = Field(default=Path("./acl_audit.jsonl"))


class LoggingConfig(BaseModel):
    """Standard-library logging level applied by the CLI."""

    model_config = {"extra": "allow"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="WARNING")

    @field_validator("level", mode="before")
    @classmethod
    def normalise_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class AclConfig(BaseModel):
    """Top-level configuration schema.

    Loaded from ``acl.yaml``.  All sections are optional and fall back to
    defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    store: StoreConfig = Field(default_factory=StoreConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    directory: DirectoryConfig = Field(default_factory=DirectoryConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigLoader:
    """Loads and validates ACL YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("acl.yaml"))
    """

    def load(self, config_path: Path) -> AclConfig:
        """Load and validate a YAML config file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"ACL config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        config = AclConfig.model_validate(raw)
        logger.debug("Loaded ACL config from %s (store=%s)", config_path, config.store.path)
        return config

    def load_string(self, yaml_content: str) -> AclConfig:
        """Load and validate a YAML string directly."""
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return AclConfig.model_validate(raw)

    def defaults(self) -> AclConfig:
        """Return a configuration with every default applied."""
        return AclConfig()
