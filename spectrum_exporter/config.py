# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

import logging
import os
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG = logging.getLogger(__name__)

DEFAULT_LISTEN = ":9747"
DEFAULT_SCRAPE_TIMEOUT = 30


class ConfigError(Exception):
    """Invalid exporter configuration; fatal at startup."""


class CredentialError(Exception):
    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"{reason} for {target!r}")


class EnvConfig(BaseSettings):
    """Settings read from SPECTRUM_* environment variables or a .env file."""
    auth_file: Optional[str] = None
    listen: str = DEFAULT_LISTEN
    scrape_timeout: float = DEFAULT_SCRAPE_TIMEOUT
    insecure: bool = False
    extra_ca_cert: Optional[str] = None
    loglevel: str = "INFO"
    logfile: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="SPECTRUM_",
        env_file=".env",
        case_sensitive=False,
        extra='ignore',  # Ignore extra fields in .env that aren't defined in the model
    )


class Auth(BaseModel):
    """One credential map entry."""
    # YAML reads unquoted 123456 as an int; credentials are always text
    model_config = ConfigDict(frozen=True, extra='ignore', coerce_numbers_to_str=True)

    user: str = ""
    password: str = ""

    def __repr__(self):
        return f"Auth(user={self.user!r}, password='***')"

    __str__ = __repr__


class CredentialMap:
    """
    Read-only mapping of "scheme://host[:port]" to API credentials.

    Loaded once at startup and shared by all probe threads.
    """

    def __init__(self, entries: Mapping[str, Auth]):
        self._entries = MappingProxyType(dict(entries))

    def __len__(self):
        return len(self._entries)

    def __contains__(self, target):
        return target in self._entries

    def lookup(self, target: str) -> Auth:
        """
        Return the credentials for an exact target string.

        Raises:
            CredentialError: If there is no entry or the entry lacks user or password
        """
        auth = self._entries.get(target)
        if auth is None:
            raise CredentialError(target, "No API authentication registered")
        if not auth.user or not auth.password:
            raise CredentialError(target, "Invalid authentication data")
        return auth


def parse_auth_map(data) -> CredentialMap:
    """Build a CredentialMap from the decoded YAML document."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"authentication map must be a mapping, got {type(data).__name__}")
    entries: Dict[str, Auth] = {}
    for target, entry in data.items():
        try:
            entries[str(target)] = Auth.model_validate(entry or {})
        except ValidationError as e:
            raise ConfigError(f"invalid authentication entry for {target!r}: {e}") from e
    return CredentialMap(entries)


def load_auth_map(path: str) -> CredentialMap:
    """
    Load the YAML authentication map file.

    Example file:
        https://san1.example.com:
          user: monitor
          password: secret
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read API authentication map file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse API authentication map file: {e}") from e
    credentials = parse_auth_map(data)
    LOG.info(f"Loaded {len(credentials)} API credentials")
    return credentials


def parse_listen(listen: str):
    """Split "[host]:port" into (host, port); an empty host means all interfaces."""
    host, sep, port = listen.rpartition(':')
    if not sep or not port.isdigit():
        raise ConfigError(f"invalid listen address {listen!r}, expected [host]:port")
    host = host.strip('[]') or '0.0.0.0'
    return host, int(port)


class Settings:
    """
    Effective exporter settings: command line first, then environment and
    .env, then defaults.
    """

    def __init__(self, cmd=None, env: Optional[EnvConfig] = None):
        env = env or EnvConfig()

        def pick(name):
            value = getattr(cmd, name, None) if cmd is not None else None
            return value if value is not None else getattr(env, name)

        self.auth_file = pick('auth_file')
        self.listen = pick('listen')
        self.scrape_timeout = float(pick('scrape_timeout'))
        # store_true flags can only turn the setting on
        self.insecure = bool(getattr(cmd, 'insecure', False)) or env.insecure
        self.extra_ca_cert = pick('extra_ca_cert')
        self.loglevel = str(pick('loglevel')).upper()
        self.logfile = pick('logfile')

    def validate(self) -> None:
        if not self.auth_file:
            raise ConfigError("--auth-file (or SPECTRUM_AUTH_FILE) is required")
        if self.scrape_timeout <= 0:
            raise ConfigError("--scrape-timeout must be a positive number of seconds")
        if self.extra_ca_cert and not os.path.isfile(self.extra_ca_cert):
            raise ConfigError(f"extra CA file {self.extra_ca_cert} does not exist")
        if self.loglevel not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            raise ConfigError(f"invalid log level {self.loglevel!r}")
        parse_listen(self.listen)
