"""
Reference wallet kept in process.

:class:`LocalWallet` satisfies the Tailwind wallet contract with keys held
in memory. Every signing request goes through an approver, the stand-in
for the user prompt: it returns the document to sign (possibly edited) or
raises :class:`~tailwind_connect.exceptions.UserRejectedError`.

Usage::

    wallet = LocalWallet(chains=["cosmoshub-4"])
    account = wallet.add_account("cosmoshub-4", "cosmos1...")
    wallet.enable("cosmoshub-4")

    signer = await wallet.get_offline_signer("cosmoshub-4")
    signer.declare_max_gas_estimate(200000)
    response = await signer.sign_direct(account.address, sign_doc)
"""
import base64
import inspect
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .config import ChainConfig
from .encoding import make_sign_bytes, serialize_sign_doc
from .exceptions import (
    AccountNotFoundError, ChainNotSupportedError, NotEnabledError, UserRejectedError
)
from .keys import LocalKey
from .models import (
    AccountData,
    Algo,
    AminoSignResponse,
    DirectSignResponse,
    SignDoc,
    SignMode,
    StdSignature,
    StdSignDoc,
    TailwindSignOptions,
)
from .signer import TailwindOfflineSigner, TailwindWallet

logger = logging.getLogger(__name__)

AnySignDoc = Union[StdSignDoc, SignDoc]


@dataclass(frozen=True)
class SignRequest:
    """What the approver is asked to confirm"""
    chain_id: str
    account: AccountData
    mode: SignMode
    sign_doc: AnySignDoc
    options: TailwindSignOptions


Approver = Callable[[SignRequest], Union[Optional[AnySignDoc], Awaitable[Optional[AnySignDoc]]]]


def auto_approve(request: SignRequest) -> AnySignDoc:
    """Approve every request unchanged"""
    return request.sign_doc


class LocalSigner(TailwindOfflineSigner):
    """Signer for one chain of a :class:`LocalWallet`"""

    def __init__(self, wallet: "LocalWallet", chain_id: str):
        super().__init__(chain_id)
        self._wallet = wallet

    async def get_accounts(self) -> Tuple[AccountData, ...]:
        return self._wallet.accounts_for(self.chain_id)

    async def _sign_amino(
        self, account: AccountData, sign_doc: StdSignDoc, options: TailwindSignOptions
    ) -> AminoSignResponse:
        approved = await self._wallet.approve(
            SignRequest(self.chain_id, account, SignMode.AMINO, sign_doc, options)
        )
        if not isinstance(approved, StdSignDoc):
            approved = StdSignDoc.model_validate(approved)
        self._check_chain(approved.chain_id)

        signature = self._wallet.key_for(self.chain_id, account.address).sign(
            serialize_sign_doc(approved)
        )
        return AminoSignResponse(signed=approved, signature=self._std_signature(account, signature))

    async def _sign_direct(
        self, account: AccountData, sign_doc: SignDoc, options: TailwindSignOptions
    ) -> DirectSignResponse:
        approved = await self._wallet.approve(
            SignRequest(self.chain_id, account, SignMode.DIRECT, sign_doc, options)
        )
        if not isinstance(approved, SignDoc):
            approved = SignDoc.model_validate(approved)
        self._check_chain(approved.chain_id)

        signature = self._wallet.key_for(self.chain_id, account.address).sign(
            make_sign_bytes(approved)
        )
        return DirectSignResponse(signed=approved, signature=self._std_signature(account, signature))

    @staticmethod
    def _std_signature(account: AccountData, signature: bytes) -> StdSignature:
        return StdSignature(
            pub_key=account.to_pubkey(),
            signature=base64.b64encode(signature).decode("ascii"),
        )


class LocalWallet(TailwindWallet):
    """
    In-memory Tailwind wallet.

    Chains must be enabled before their accounts are visible or usable; a
    chain with no accounts counts as not enabled. One signer instance is
    kept per chain so hints declared on it survive repeated lookups.
    """

    def __init__(
        self,
        chains: Optional[Iterable[str]] = None,
        approver: Optional[Approver] = None,
    ):
        """
        Initialize the wallet.

        Args:
            chains: Supported chain ids; defaults to the bundled chain registry
            approver: Callback confirming each signing request
        """
        self._chains: Set[str] = set(chains) if chains is not None else set(ChainConfig.list_chain_ids())
        self._approver = approver or auto_approve
        self._accounts: Dict[str, "OrderedDict[str, Tuple[AccountData, LocalKey]]"] = {}
        self._enabled: Set[str] = set()
        self._signers: Dict[str, LocalSigner] = {}
        self._lock = threading.RLock()

    @property
    def supported_chains(self) -> List[str]:
        return sorted(self._chains)

    def _require_chain(self, chain_id: str) -> None:
        if chain_id not in self._chains:
            raise ChainNotSupportedError(chain_id)

    # =========================================================================
    # Account management
    # =========================================================================

    def add_account(
        self,
        chain_id: str,
        address: str,
        key: Optional[LocalKey] = None,
        algo: Algo = Algo.SECP256K1,
    ) -> AccountData:
        """
        Add an account to a chain. A key is generated when none is given.

        Raises:
            ChainNotSupportedError: If the chain is not supported
            ValueError: If the address does not carry the chain's bech32
                prefix or already exists on the chain
        """
        self._require_chain(chain_id)
        if ChainConfig.is_supported(chain_id):
            prefix = ChainConfig.get_address_prefix(chain_id)
            if not address.startswith(prefix + "1"):
                raise ValueError(f"Address {address} is not a {prefix} address for {chain_id}")
        key = key or LocalKey.generate(algo)
        account = AccountData(address=address, algo=key.algo, pubkey=key.public_bytes)

        with self._lock:
            accounts = self._accounts.setdefault(chain_id, OrderedDict())
            if address in accounts:
                raise ValueError(f"Account {address} already exists on {chain_id}")
            accounts[address] = (account, key)
        logger.debug("Added %s account on %s", key.algo.value, chain_id)
        return account

    def remove_account(self, chain_id: str, address: str) -> None:
        with self._lock:
            accounts = self._accounts.get(chain_id, {})
            if address not in accounts:
                raise AccountNotFoundError(address, chain_id)
            del accounts[address]

    def enable(self, *chain_ids: str) -> None:
        """Grant access to the given chains"""
        for chain_id in chain_ids:
            self._require_chain(chain_id)
        with self._lock:
            self._enabled.update(chain_ids)
        logger.info("Enabled chains: %s", ", ".join(chain_ids))

    def disable(self, chain_id: str) -> None:
        with self._lock:
            self._enabled.discard(chain_id)

    def is_enabled(self, chain_id: str) -> bool:
        return chain_id in self._enabled

    def accounts_for(self, chain_id: str) -> Tuple[AccountData, ...]:
        """
        Accounts visible on a chain.

        Raises:
            NotEnabledError: If the chain is not enabled or has no accounts
        """
        with self._lock:
            accounts = tuple(a for a, _ in self._accounts.get(chain_id, {}).values())
            enabled = chain_id in self._enabled
        if not enabled or not accounts:
            raise NotEnabledError(f"Tailwind is not enabled for {chain_id}")
        return accounts

    def key_for(self, chain_id: str, address: str) -> LocalKey:
        with self._lock:
            entry = self._accounts.get(chain_id, {}).get(address)
        if entry is None:
            raise AccountNotFoundError(address, chain_id)
        return entry[1]

    # =========================================================================
    # Approval
    # =========================================================================

    async def approve(self, request: SignRequest) -> AnySignDoc:
        """
        Ask the approver to confirm a request.

        Raises:
            UserRejectedError: If the approver rejects or returns None
        """
        result = self._approver(request)
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            raise UserRejectedError("Request rejected by user")
        return result

    # =========================================================================
    # Wallet contract
    # =========================================================================

    async def get_offline_signer(self, chain_id: str) -> LocalSigner:
        self._require_chain(chain_id)
        with self._lock:
            signer = self._signers.get(chain_id)
            if signer is None:
                signer = LocalSigner(self, chain_id)
                self._signers[chain_id] = signer
        return signer

    async def get_account(self, chain_id: str, address: str) -> AccountData:
        self._require_chain(chain_id)
        for account in self.accounts_for(chain_id):
            if account.address == address:
                return account
        raise AccountNotFoundError(address, chain_id)
