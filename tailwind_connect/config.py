"""
Configuration for tailwind-connect.

Chain metadata ships with the package in ``chains.json``. Discovery settings
default to the values the wallet handshake was designed around and can be
overridden through the environment.
"""
import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from typing import Any, Dict, List, Optional

from .exceptions import ChainNotSupportedError

logger = logging.getLogger(__name__)

READY_EVENT = "tailwind.readystatechange"
DEFAULT_POLL_INTERVAL_MS = 100


class ChainConfig:
    """Chain registry loaded from the bundled chains.json"""

    _chains_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_chains(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load chain metadata, caching it after the first read.

        Returns:
            Mapping of chain id to chain metadata
        """
        if cls._chains_cache is not None:
            return cls._chains_cache

        with resources.files("tailwind_connect").joinpath("chains.json").open("r", encoding="utf-8") as f:
            cls._chains_cache = json.load(f)
        logger.debug("Loaded %d chain definitions", len(cls._chains_cache))
        return cls._chains_cache

    @classmethod
    def list_chain_ids(cls) -> List[str]:
        return sorted(cls.load_chains())

    @classmethod
    def is_supported(cls, chain_id: str) -> bool:
        return chain_id in cls.load_chains()

    @classmethod
    def get_chain(cls, chain_id: str) -> Dict[str, Any]:
        """
        Get metadata for one chain.

        Raises:
            ChainNotSupportedError: If the chain is not in the registry
        """
        chains = cls.load_chains()
        if chain_id not in chains:
            raise ChainNotSupportedError(
                chain_id,
                f"Chain not supported: {chain_id}. Known chains: {', '.join(sorted(chains))}",
            )
        return chains[chain_id]

    @classmethod
    def get_address_prefix(cls, chain_id: str) -> str:
        """Human-readable bech32 prefix of account addresses on ``chain_id``"""
        return cls.get_chain(chain_id)["bech32Prefix"]


@dataclass(frozen=True)
class DiscoverySettings:
    """
    Wallet discovery settings.

    Attributes:
        poll_interval: Seconds between host ready-state checks
        timeout: Seconds to wait for the wallet, None waits forever
        event_name: Readiness event dispatched on the host
    """
    poll_interval: float = DEFAULT_POLL_INTERVAL_MS / 1000
    timeout: Optional[float] = None
    event_name: str = READY_EVENT

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError(f"timeout must not be negative, got {self.timeout}")
        if not self.event_name:
            raise ValueError("event_name must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "DiscoverySettings":
        """
        Build settings from TAILWIND_POLL_INTERVAL_MS, TAILWIND_DISCOVERY_TIMEOUT
        and TAILWIND_READY_EVENT.

        Raises:
            ValueError: If a variable is set to an invalid value
        """
        env = os.environ if environ is None else environ

        interval_ms = env.get("TAILWIND_POLL_INTERVAL_MS")
        timeout = env.get("TAILWIND_DISCOVERY_TIMEOUT")
        try:
            poll_interval = int(interval_ms) / 1000 if interval_ms else DEFAULT_POLL_INTERVAL_MS / 1000
            timeout_s = float(timeout) if timeout else None
        except ValueError as e:
            raise ValueError(f"Invalid discovery setting in environment: {e}") from e

        return cls(
            poll_interval=poll_interval,
            timeout=timeout_s,
            event_name=env.get("TAILWIND_READY_EVENT") or READY_EVENT,
        )
