"""
Wallet discovery for tailwind-connect.

A dApp calls :func:`get_tailwind_wallet` (or
:meth:`WalletDiscovery.obtain_wallet`) as early as it likes. Discovery polls
the host until the page has finished loading, dispatches the
``tailwind.readystatechange`` event once, and waits for the injected
provider to answer by registering its wallet handle. Every waiter receives
the same handle.

State machine::

    POLLING ──(host ready_state == complete)──> READY

READY is terminal and is entered exactly once per discovery, so the
readiness event is dispatched at most once no matter how many callers are
waiting.
"""
import asyncio
import logging
import threading
from enum import Enum
from typing import Dict, Optional, Tuple

from ._rate_limited_log import rate_limited_log
from ._wait import wait_for_condition
from .config import DiscoverySettings
from .exceptions import DiscoveryTimeoutError, WalletAlreadyRegisteredError
from .host import Host, ReadyState
from .signer import TailwindWallet

__all__ = [
    'DiscoveryState',
    'WalletDiscovery',
    'get_discovery',
    'get_tailwind_wallet',
    'reset_discovery_cache',
]

logger = logging.getLogger(__name__)


class DiscoveryState(Enum):
    """Discovery progress."""
    POLLING = "polling"
    READY = "ready"


def _resolve(future: asyncio.Future, wallet: TailwindWallet) -> None:
    if not future.done():
        future.set_result(wallet)


class WalletDiscovery:
    """
    Discovers the Tailwind wallet on one host.

    The readiness half (poll, then dispatch once) and the handle half
    (single-assignment registration) are independent: a provider may
    register before or after the event goes out.
    """

    def __init__(self, host: Host, settings: Optional[DiscoverySettings] = None):
        """
        Initialize discovery.

        Args:
            host: Host environment to poll and dispatch on
            settings: Poll interval, default timeout and event name
        """
        self._host = host
        self._settings = settings or DiscoverySettings()
        self._state = DiscoveryState.POLLING
        self._wallet: Optional[TailwindWallet] = None
        self._future: Optional[asyncio.Future] = None
        self._lock = threading.RLock()

    @property
    def host(self) -> Host:
        return self._host

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def event_name(self) -> str:
        return self._settings.event_name

    @property
    def poll_interval(self) -> float:
        return self._settings.poll_interval

    @property
    def wallet(self) -> Optional[TailwindWallet]:
        """The registered wallet handle, if any."""
        return self._wallet

    # =========================================================================
    # Readiness
    # =========================================================================

    def _mark_ready(self) -> None:
        with self._lock:
            if self._state is DiscoveryState.READY:
                return
            self._state = DiscoveryState.READY

        logger.info("Tailwind API ready, dispatching %s", self.event_name)
        self._host.dispatch_event(self.event_name)

    def _check_ready(self) -> bool:
        if self._state is DiscoveryState.READY:
            return True
        state = self._host.ready_state
        if state != ReadyState.COMPLETE:
            rate_limited_log(
                "Host not ready (%s), polling for Tailwind wallet",
                getattr(state, "value", state),
                level="debug",
                interval=5,
                logger_instance=logger,
            )
            return False
        self._mark_ready()
        return True

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        """
        Wait for the host to finish loading and dispatch the readiness event.

        Args:
            timeout: Seconds to wait; None uses the configured default

        Raises:
            DiscoveryTimeoutError: If the host is still loading at the deadline
        """
        if timeout is None:
            timeout = self._settings.timeout
        try:
            await wait_for_condition(self._check_ready, self.poll_interval, timeout)
        except TimeoutError as e:
            raise DiscoveryTimeoutError(
                f"Host did not finish loading within {timeout}s"
            ) from e

    # =========================================================================
    # Wallet handle
    # =========================================================================

    def register(self, wallet: TailwindWallet) -> None:
        """
        Supply the wallet handle. Resolves every pending and future waiter.

        Registering the same handle again is a no-op.

        Raises:
            WalletAlreadyRegisteredError: If a different handle was registered
        """
        if wallet is None:
            raise ValueError("wallet must not be None")

        with self._lock:
            if self._wallet is not None:
                if self._wallet is wallet:
                    return
                raise WalletAlreadyRegisteredError(
                    "A different wallet is already registered for this host"
                )
            self._wallet = wallet
            future = self._future
            # A future from a finished loop has no waiters; the next
            # obtain_wallet builds a fresh one on its own loop
            if future is not None and future.get_loop().is_closed():
                self._future = future = None

        logger.info("Tailwind wallet registered: %s", type(wallet).__name__)
        if future is None or future.done():
            return

        loop = future.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            _resolve(future, wallet)
        else:
            loop.call_soon_threadsafe(_resolve, future, wallet)

    def _wallet_future(self) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._future is None or self._future.get_loop() is not loop:
                self._future = loop.create_future()
                if self._wallet is not None:
                    self._future.set_result(self._wallet)
            return self._future

    async def obtain_wallet(self, timeout: Optional[float] = None) -> TailwindWallet:
        """
        Get the wallet handle once the host is ready and a provider registered it.

        Cancelling the caller does not affect other waiters.

        Args:
            timeout: Overall seconds to wait; None uses the configured
                default, which waits forever unless set

        Returns:
            The registered wallet handle

        Raises:
            DiscoveryTimeoutError: If the deadline passes first
        """
        if timeout is None:
            timeout = self._settings.timeout
        loop = asyncio.get_running_loop()
        started = loop.time()

        await self.wait_ready(timeout)
        future = self._wallet_future()
        if timeout is None:
            return await asyncio.shield(future)

        remaining = max(0.0, timeout - (loop.time() - started))
        try:
            return await asyncio.wait_for(asyncio.shield(future), remaining)
        except asyncio.TimeoutError as e:
            raise DiscoveryTimeoutError(
                f"No Tailwind wallet registered within {timeout}s"
            ) from e


# Module-level discovery cache, one per host, with thread safety
_discovery_cache: Dict[int, Tuple[Host, WalletDiscovery]] = {}
_cache_lock = threading.RLock()


def get_discovery(host: Host, settings: Optional[DiscoverySettings] = None) -> WalletDiscovery:
    """
    Get or create the discovery for ``host``.

    Settings only apply when the discovery is created.
    """
    with _cache_lock:
        entry = _discovery_cache.get(id(host))
        if entry is None or entry[0] is not host:
            entry = (host, WalletDiscovery(host, settings))
            _discovery_cache[id(host)] = entry
        return entry[1]


def reset_discovery_cache() -> None:
    """Forget every cached discovery (for testing or a new host lifecycle)"""
    with _cache_lock:
        _discovery_cache.clear()


async def get_tailwind_wallet(
    host: Host,
    timeout: Optional[float] = None,
    settings: Optional[DiscoverySettings] = None,
) -> TailwindWallet:
    """
    Obtain the Tailwind wallet for ``host``.

    Repeated calls share one discovery, so the readiness event goes out at
    most once per host.

    Raises:
        DiscoveryTimeoutError: If a timeout is given and expires
    """
    return await get_discovery(host, settings).obtain_wallet(timeout)
