"""
Provider side of the discovery handshake.

An injected provider does not know when, or whether, the dApp will look for
the wallet. It listens for the readiness event and answers by registering
its wallet with the host's discovery.
"""
import logging
from typing import Optional

from .discovery import DiscoveryState, WalletDiscovery, get_discovery
from .host import Host
from .signer import TailwindWallet

logger = logging.getLogger(__name__)


class ProviderRegistration:
    """Listener installed by :func:`inject_provider`"""

    def __init__(self, discovery: WalletDiscovery, wallet: TailwindWallet):
        self.discovery = discovery
        self.wallet = wallet
        self.attached = False

    def _on_ready(self, event_name: str) -> None:
        logger.debug("Received %s, registering wallet", event_name)
        self.discovery.register(self.wallet)

    def attach(self) -> None:
        if self.attached:
            return
        self.discovery.host.add_event_listener(self.discovery.event_name, self._on_ready)
        self.attached = True

    def detach(self) -> None:
        """Stop listening for the readiness event"""
        if not self.attached:
            return
        self.discovery.host.remove_event_listener(self.discovery.event_name, self._on_ready)
        self.attached = False


def inject_provider(
    host: Host,
    wallet: TailwindWallet,
    discovery: Optional[WalletDiscovery] = None,
) -> ProviderRegistration:
    """
    Make ``wallet`` discoverable on ``host``.

    If the readiness event already went out the wallet is registered
    immediately, otherwise on the event.

    Args:
        host: Host the dApp runs on
        wallet: Wallet handle to hand out
        discovery: Discovery to answer; defaults to the host's cached one

    Returns:
        The installed registration
    """
    discovery = discovery or get_discovery(host)
    registration = ProviderRegistration(discovery, wallet)
    registration.attach()

    if discovery.state is DiscoveryState.READY:
        discovery.register(wallet)
    return registration
