"""
Client configuration.

ClientConfig holds the merchant's credentials and connection defaults.
It is validated once, at construction, and never changes afterwards:
every concurrent request reads the same immutable instance.

Example usage:
    config = ClientConfig(
        app_id="app_123",
        merchant_no="M0001",
        store_no="S0001",
        private_key=open("merchant_private.pem").read(),
        public_key=open("merchant_public.pem").read(),
        gateway_public_key=open("gateway_public.pem").read(),
        sandbox=True,
    )

    # Or from ADDPAY_* environment variables
    config = ClientConfig.from_env()
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ..shared.constants import Config
from ..shared.errors import ConfigurationError


_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """
    Credentials and connection settings for one client instance.

    All six credential fields are required. `public_key` is not used
    at runtime but must still be supplied.
    """
    app_id: Optional[str] = None
    merchant_no: Optional[str] = None
    store_no: Optional[str] = None
    private_key: Optional[str] = field(default=None, repr=False)
    public_key: Optional[str] = field(default=None, repr=False)
    gateway_public_key: Optional[str] = field(default=None, repr=False)
    base_url: Optional[str] = None
    timeout: float = Config.DEFAULT_TIMEOUT
    sandbox: bool = False

    REQUIRED_FIELDS = (
        "app_id",
        "merchant_no",
        "store_no",
        "private_key",
        "public_key",
        "gateway_public_key",
    )

    def __post_init__(self):
        for name in self.REQUIRED_FIELDS:
            if not getattr(self, name):
                raise ConfigurationError(name)

        if self.timeout is None or self.timeout <= 0:
            raise ConfigurationError("timeout", "timeout must be a positive number of seconds")

        base_url = self.base_url or (
            Config.SANDBOX_BASE_URL if self.sandbox else Config.PRODUCTION_BASE_URL
        )
        object.__setattr__(self, "base_url", base_url.rstrip("/"))

    @classmethod
    def from_env(
        cls,
        prefix: str = Config.ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None
    ) -> "ClientConfig":
        """
        Load configuration from environment variables.

        Reads {prefix}APP_ID, {prefix}MERCHANT_NO, {prefix}STORE_NO,
        {prefix}PRIVATE_KEY, {prefix}PUBLIC_KEY, {prefix}GATEWAY_PUBLIC_KEY
        and optionally {prefix}BASE_URL, {prefix}TIMEOUT, {prefix}SANDBOX.

        Raises:
            ConfigurationError: naming the first missing credential
        """
        env = os.environ if environ is None else environ

        settings: Dict[str, object] = {
            name: env.get(f"{prefix}{name.upper()}") for name in cls.REQUIRED_FIELDS
        }
        settings["base_url"] = env.get(f"{prefix}BASE_URL") or None
        settings["sandbox"] = env.get(f"{prefix}SANDBOX", "").strip().lower() in _TRUE_VALUES

        timeout = env.get(f"{prefix}TIMEOUT")
        if timeout:
            try:
                settings["timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError("timeout", f"Invalid {prefix}TIMEOUT: {timeout!r}")

        return cls(**settings)


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call overrides.

    Attributes:
        timeout: Seconds per attempt (default: the client's timeout)
        retries: Additional attempts after the first (default 0)
        headers: Extra HTTP headers for this call
    """
    timeout: Optional[float] = None
    retries: int = Config.DEFAULT_RETRIES
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        if self.retries is None or self.retries < 0:
            raise ValueError("retries must be zero or more")
