"""
Signer contract for tailwind-connect.

A wallet hands the dApp one :class:`TailwindOfflineSigner` per chain. Before
asking for a signature the dApp may declare negotiation hints (funds the
transaction needs, the gas it expects to burn) so the wallet can fetch,
approve or bridge resources ahead of the user prompt. Hints are optional:
a signature request without any prior declaration is valid.
"""
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import (
    Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable,
)

from .exceptions import AccountNotFoundError, ChainMismatchError
from .models import (
    AccountData,
    AminoSignResponse,
    DirectSignResponse,
    FundsRequirement,
    SignDoc,
    SignMode,
    StdSignDoc,
    TailwindSignOptions,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class OfflineAminoSigner(Protocol):
    """Protocol for signers that sign Amino JSON documents"""

    async def get_accounts(self) -> Sequence[AccountData]:
        """Get AccountData from the wallet. Rejects if not enabled."""
        ...

    async def sign_amino(self, signer_address: str, sign_doc: StdSignDoc) -> AminoSignResponse:
        """
        Request a signature from the key behind ``signer_address``.

        The wallet may let the user override parts of the document; the
        response carries the document that was actually signed.
        """
        ...


@runtime_checkable
class OfflineDirectSigner(Protocol):
    """Protocol for signers that sign protobuf SignDocs"""

    async def get_accounts(self) -> Sequence[AccountData]:
        ...

    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse:
        ...


def _short(address: str) -> str:
    return address if len(address) <= 14 else f"{address[:10]}…{address[-4:]}"


class _AddressLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class TailwindOfflineSigner(ABC):
    """
    Base class for Tailwind signers scoped to one chain.

    Subclasses provide :meth:`get_accounts`, :meth:`_sign_amino` and
    :meth:`_sign_direct`. This class owns the negotiation slot and the
    checks every signing request goes through:

    1. the sign doc targets this signer's chain,
    2. the address is one of :meth:`get_accounts`,
    3. requests for the same address run one at a time,
    4. the declared hints are consumed into a :class:`TailwindSignOptions`
       handed to the implementation.

    Funds declarations accumulate per ``(denom, chain, dst_chain)``; declaring
    the same token again replaces its amount. The gas estimate is a single
    value, the last declaration wins. Both are cleared by the signing request
    that consumes them.
    """

    def __init__(self, chain_id: str):
        if not chain_id:
            raise ValueError("chain_id must not be empty")
        self._chain_id = chain_id
        self._hints_lock = threading.Lock()
        self._funds: "OrderedDict[Tuple[str, str, Optional[str]], FundsRequirement]" = OrderedDict()
        self._max_gas: Optional[int] = None
        self._address_locks: Dict[str, _AddressLock] = {}

    @property
    def chain_id(self) -> str:
        return self._chain_id

    # =========================================================================
    # Account enumeration
    # =========================================================================

    @abstractmethod
    async def get_accounts(self) -> Tuple[AccountData, ...]:
        """
        Get the accounts this signer controls on its chain.

        Raises:
            NotEnabledError: If the wallet has not granted access
        """
        pass

    # =========================================================================
    # Negotiation hints
    # =========================================================================

    def declare_funds_required(
        self, requirement: Union[FundsRequirement, Mapping[str, Any]]
    ) -> None:
        """
        Tell the wallet the next transaction needs ``amount`` of ``token``,
        available on ``dst_chain``.

        Args:
            requirement: A FundsRequirement or a mapping with token, amount
                and dst_chain keys
        """
        if not isinstance(requirement, FundsRequirement):
            requirement = FundsRequirement.model_validate(requirement)
        with self._hints_lock:
            self._funds[requirement.key] = requirement
        logger.debug(
            "Funds declared on %s: %s %s (from %s to %s)",
            self._chain_id, requirement.amount, requirement.token.denom,
            requirement.token.chain, requirement.dst_chain or requirement.token.chain,
        )

    def declare_max_gas_estimate(self, gas: int) -> None:
        """
        Tell the wallet the most gas the next transaction should consume.

        Raises:
            ValueError: If gas is not a non-negative integer
        """
        if isinstance(gas, bool) or not isinstance(gas, int) or gas < 0:
            raise ValueError(f"gas must be a non-negative integer, got {gas!r}")
        with self._hints_lock:
            self._max_gas = gas
        logger.debug("Max gas declared on %s: %d", self._chain_id, gas)

    def pending_options(self, sign_mode: SignMode = SignMode.DIRECT) -> TailwindSignOptions:
        """Snapshot the declared hints without consuming them."""
        with self._hints_lock:
            return self._build_options(sign_mode)

    def _build_options(self, sign_mode: SignMode) -> TailwindSignOptions:
        return TailwindSignOptions(
            max_gas=self._max_gas,
            sign_mode=sign_mode,
            funds_required=tuple(self._funds.values()),
        )

    def _consume_options(self, sign_mode: SignMode) -> TailwindSignOptions:
        with self._hints_lock:
            options = self._build_options(sign_mode)
            self._funds.clear()
            self._max_gas = None
        return options

    # =========================================================================
    # Signing
    # =========================================================================

    @asynccontextmanager
    async def _serialised(self, address: str):
        """Hold the lock for ``address``; the lock is dropped once nobody uses it"""
        entry = self._address_locks.get(address)
        if entry is None:
            entry = self._address_locks[address] = _AddressLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._address_locks[address]

    async def _resolve_account(self, signer_address: str) -> AccountData:
        for account in await self.get_accounts():
            if account.address == signer_address:
                return account
        raise AccountNotFoundError(signer_address, self._chain_id)

    def _check_chain(self, chain_id: str) -> None:
        if chain_id != self._chain_id:
            raise ChainMismatchError(self._chain_id, chain_id)

    async def sign_amino(
        self, signer_address: str, sign_doc: Union[StdSignDoc, Mapping[str, Any]]
    ) -> AminoSignResponse:
        """
        Sign an Amino document with the key behind ``signer_address``.

        Callers must broadcast ``response.signed``, which may differ from
        ``sign_doc``.

        Raises:
            AccountNotFoundError: If the address is not controlled by this signer
            ChainMismatchError: If the document targets another chain
            NotEnabledError: If the wallet has not granted access
            UserRejectedError: If the user declines
        """
        if not isinstance(sign_doc, StdSignDoc):
            sign_doc = StdSignDoc.model_validate(sign_doc)
        self._check_chain(sign_doc.chain_id)

        async with self._serialised(signer_address):
            account = await self._resolve_account(signer_address)
            options = self._consume_options(SignMode.AMINO)
            logger.info("Amino sign request on %s for %s", self._chain_id, _short(signer_address))
            return await self._sign_amino(account, sign_doc, options)

    async def sign_direct(
        self, signer_address: str, sign_doc: Union[SignDoc, Mapping[str, Any]]
    ) -> DirectSignResponse:
        """
        Sign a protobuf SignDoc with the key behind ``signer_address``.

        Same contract and errors as :meth:`sign_amino`.
        """
        if not isinstance(sign_doc, SignDoc):
            sign_doc = SignDoc.model_validate(sign_doc)
        self._check_chain(sign_doc.chain_id)

        async with self._serialised(signer_address):
            account = await self._resolve_account(signer_address)
            options = self._consume_options(SignMode.DIRECT)
            logger.info("Direct sign request on %s for %s", self._chain_id, _short(signer_address))
            return await self._sign_direct(account, sign_doc, options)

    @abstractmethod
    async def _sign_amino(
        self, account: AccountData, sign_doc: StdSignDoc, options: TailwindSignOptions
    ) -> AminoSignResponse:
        pass

    @abstractmethod
    async def _sign_direct(
        self, account: AccountData, sign_doc: SignDoc, options: TailwindSignOptions
    ) -> DirectSignResponse:
        pass


class TailwindWallet(ABC):
    """
    Wallet handle returned by discovery.

    Produces per-chain signers and looks up individual accounts.
    """

    @abstractmethod
    async def get_offline_signer(self, chain_id: str) -> TailwindOfflineSigner:
        """
        Get the signer for ``chain_id``.

        Raises:
            ChainNotSupportedError: If the wallet does not know the chain
        """
        pass

    @abstractmethod
    async def get_account(self, chain_id: str, address: str) -> AccountData:
        """
        Look up one account.

        Raises:
            ChainNotSupportedError: If the wallet does not know the chain
            AccountNotFoundError: If the address is not controlled by the wallet
        """
        pass
