"""
Pydantic configuration models.

Validates the updater configuration (file contents merged with command-line
overrides) and AWS credentials up front, before any network activity,
instead of discovering bad values halfway through an update.
"""

from __future__ import annotations

import enum
import os
import re
import tomllib
from ipaddress import IPv4Address, IPv6Address
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationError
from .models import normalize_hostname

DEFAULT_IP_SERVICE = "https://ipinfo.kanga.org/"

# Fallback when neither the hostname, its zone nor the run sets a TTL.
DEFAULT_TTL = 300

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Any) -> float:
    """Parse seconds given as a number or a string such as ``10s`` or ``500ms``."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    return float(match.group(1)) * _DURATION_UNITS[match.group(2)]


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class AWSConfig(BaseModel):
    """Configuration for the Route 53 client.

    Credentials are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_DEFAULT_REGION).
    3. If neither is set, fields are left as None so boto3 can fall back to its
       own credential chain (instance metadata, ~/.aws/credentials, etc.).
    """

    model_config = ConfigDict(extra="forbid")

    aws_access_key_id: str | None = Field(default=None, description="AWS access key ID")
    aws_secret_access_key: str | None = Field(default=None, description="AWS secret access key")
    region_name: str | None = Field(default=None, description="AWS region (e.g. 'us-east-1')")

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing credentials."""
        env_map = {
            "aws_access_key_id": "AWS_ACCESS_KEY_ID",
            "aws_secret_access_key": "AWS_SECRET_ACCESS_KEY",
            "region_name": "AWS_DEFAULT_REGION",
        }
        for field, env_var in env_map.items():
            if not values.get(field):
                values[field] = os.environ.get(env_var)
        return values


class AddressType(str, enum.Enum):
    """Which address families to discover and publish."""

    BOTH = "both"
    IPV4 = "ipv4"
    IPV6 = "ipv6"

    def allows_version(self, version: int) -> bool:
        if version == 4:
            return self in (AddressType.BOTH, AddressType.IPV4)
        return self in (AddressType.BOTH, AddressType.IPV6)

    def allows(self, address: IPv4Address | IPv6Address) -> bool:
        return self.allows_version(address.version)


class _KebabModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=_kebab,
        populate_by_name=True,
        validate_assignment=True,
    )


class HostnameConfig(_KebabModel):
    """A managed hostname with an optional TTL override."""

    hostname: str = Field(min_length=1)
    ttl: PositiveInt | None = None

    @property
    def key(self) -> str:
        """Comparison key: DNS names are case-insensitive and the trailing dot is optional."""
        return hostname_key(self.hostname)


def hostname_key(hostname: str) -> str:
    return normalize_hostname(hostname).lower()


class ZoneConfig(_KebabModel):
    """A Route 53 hosted zone and the hostnames managed in it."""

    zone_id: str = Field(min_length=1)
    hostnames: list[HostnameConfig] = Field(default_factory=list)
    ttl: PositiveInt | None = None

    @field_validator("hostnames", mode="before")
    @classmethod
    def accept_bare_hostnames(cls, value: Any) -> Any:
        """Allow ``- www.example.com`` as shorthand for ``- hostname: www.example.com``."""
        if isinstance(value, list):
            return [{"hostname": item} if isinstance(item, str) else item for item in value]
        return value

    @model_validator(mode="after")
    def reject_duplicate_hostnames(self) -> ZoneConfig:
        # Two entries for one name would put two writes for the same
        # record set into a single change batch.
        seen: set[str] = set()
        for h in self.hostnames:
            if h.key in seen:
                raise ValueError(
                    f"Hostname {h.hostname} is listed more than once in zone {self.zone_id}."
                )
            seen.add(h.key)
        return self

    def add_hostname(self, hostname: str) -> None:
        """Add *hostname* unless the zone already manages the same name."""
        key = hostname_key(hostname)
        if any(h.key == key for h in self.hostnames):
            return
        self.hostnames.append(HostnameConfig(hostname=hostname))


class UpdaterConfig(_KebabModel):
    """Everything one updater run needs, after file and CLI merging."""

    address_type: AddressType = AddressType.BOTH
    allow_nonroutable: bool = False
    query_interfaces: bool = False
    query_ip_service: bool = True
    ignore_interfaces: list[str] = Field(default_factory=list)
    ip_service: str = DEFAULT_IP_SERVICE
    timeout: float = Field(default=10.0, gt=0, description="IP service timeout, seconds")
    api_timeout: float = Field(default=10.0, gt=0, description="Route 53 call timeout, seconds")
    poll_interval: float = Field(default=0.5, ge=0)
    propagation_timeout: float | None = Field(default=None, gt=0)
    route53_zones: list[ZoneConfig] = Field(default_factory=list)
    ttl: PositiveInt | None = None

    @field_validator(
        "timeout", "api_timeout", "poll_interval", "propagation_timeout", mode="before"
    )
    @classmethod
    def accept_duration_strings(cls, value: Any) -> Any:
        if value is None:
            return None
        return parse_duration(value)

    # --- Filters ---

    def allows_interface(self, interface: str) -> bool:
        """Indicate whether addresses on *interface* should be used."""
        return interface not in self.ignore_interfaces

    def allows_address(self, address: IPv4Address | IPv6Address) -> bool:
        """Indicate whether *address* may be published."""
        if not address.is_global and not self.allow_nonroutable:
            return False
        return self.address_type.allows(address)

    # --- Merging ---

    def get_or_create_zone(self, zone_id: str) -> ZoneConfig:
        for zone in self.route53_zones:
            if zone.zone_id == zone_id:
                return zone
        zone = ZoneConfig(zone_id=zone_id)
        self.route53_zones.append(zone)
        return zone

    def merge_args(
        self,
        *,
        address_type: str | AddressType | None = None,
        allow_nonroutable: bool | None = None,
        query_interfaces: bool | None = None,
        ignore_interfaces: Iterable[str] = (),
        ip_service: str | None = None,
        timeout: str | float | None = None,
        ttl: int | None = None,
        route53_zone: str | None = None,
        hostnames: Iterable[str] = (),
    ) -> None:
        """Apply command-line overrides on top of the file configuration.

        Scalar options replace the file value when given, ignored interfaces
        are appended, and hostnames are added to ``route53_zone`` (created if
        the file does not mention it). An empty ``ip_service`` disables the
        IP service query.

        Raises:
            ConfigurationError: If an override does not validate.
        """
        try:
            if address_type is not None:
                self.address_type = AddressType(address_type)
            if allow_nonroutable is not None:
                self.allow_nonroutable = allow_nonroutable
            if query_interfaces is not None:
                self.query_interfaces = query_interfaces
            self.ignore_interfaces = [*self.ignore_interfaces, *ignore_interfaces]
            if ip_service is not None:
                self.ip_service = ip_service
                if not ip_service:
                    self.query_ip_service = False
            if timeout is not None:
                self.timeout = timeout
            if ttl is not None:
                self.ttl = ttl
            hostnames = list(hostnames)
            if route53_zone is not None:
                zone = self.get_or_create_zone(route53_zone)
                for hostname in hostnames:
                    zone.add_hostname(hostname)
            elif hostnames:
                raise ConfigurationError("Hostnames were given without a Route 53 zone.")
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(_validation_messages(e)) from e

    # --- Validation ---

    def check(self) -> None:
        """Verify the merged configuration can drive an update.

        Raises:
            ConfigurationError: Listing every problem found.
        """
        messages: list[str] = []

        if self.query_ip_service and not self.ip_service:
            messages.append(
                "The IP service cannot be empty if querying the IP service is enabled."
            )

        if not self.query_ip_service and not self.query_interfaces:
            messages.append("Not querying any interfaces or IP services.")

        if not self.route53_zones:
            messages.append("No Route 53 zones have been configured.")
        for zone in self.route53_zones:
            if not zone.hostnames:
                messages.append(f"No hostnames have been configured for zone {zone.zone_id}.")

        if messages:
            raise ConfigurationError(messages)


def _validation_messages(exc: ValidationError | ValueError) -> list[str]:
    if isinstance(exc, ValidationError):
        return [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
    return [str(exc)]


def validate_config(config: dict[str, Any]) -> UpdaterConfig:
    """Validate a raw configuration mapping.

    Args:
        config: Mapping with kebab-case (or snake_case) keys.

    Returns:
        A validated :class:`UpdaterConfig`.

    Raises:
        ConfigurationError: If the mapping does not validate.
    """
    try:
        return UpdaterConfig.model_validate(config)
    except ValidationError as e:
        raise ConfigurationError(_validation_messages(e)) from e


def load_config_file(path: str | Path) -> UpdaterConfig:
    """Load and validate a TOML, JSON or YAML configuration file.

    The parser is chosen by extension: ``.toml`` uses :mod:`tomllib`;
    ``.json``, ``.yaml`` and ``.yml`` use PyYAML (JSON is a YAML subset).

    Raises:
        ConfigurationError: If the file cannot be read, has an unknown or
            missing extension, or does not validate.
    """
    path = Path(path)
    ext = path.suffix.lower().lstrip(".")
    if not ext:
        raise ConfigurationError(f"Configuration file {path} has no extension")
    if ext not in ("toml", "json", "yaml", "yml"):
        raise ConfigurationError(f"Unknown extension for configuration file: {ext}")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Unable to read configuration file {path}: {e}") from e

    try:
        if ext == "toml":
            raw = tomllib.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Unable to parse configuration file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return validate_config(raw)


__all__ = [
    "DEFAULT_IP_SERVICE",
    "DEFAULT_TTL",
    "AWSConfig",
    "AddressType",
    "HostnameConfig",
    "ZoneConfig",
    "UpdaterConfig",
    "parse_duration",
    "validate_config",
    "load_config_file",
]
