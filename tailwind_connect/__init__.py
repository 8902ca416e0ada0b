"""
tailwind-connect: dApp-side contract for the Tailwind wallet.

Discover the injected wallet without racing the page load, then negotiate
resources and request Amino or Direct signatures from a per-chain signer.
"""
from .version import __version__
from .config import ChainConfig, DiscoverySettings, READY_EVENT
from .discovery import (
    DiscoveryState, WalletDiscovery, get_discovery, get_tailwind_wallet, reset_discovery_cache
)
from .encoding import make_sign_bytes, parse_sign_bytes, serialize_sign_doc, sign_doc_to_json
from .exceptions import (
    TailwindError,
    NotEnabledError,
    UnauthorizedError,
    UserRejectedError,
    ChainNotSupportedError,
    AccountNotFoundError,
    ChainMismatchError,
    DiscoveryTimeoutError,
    WalletAlreadyRegisteredError,
    UnsupportedAlgorithmError,
    CodecError,
)
from .host import Host, InMemoryHost, ReadyState
from .local import LocalSigner, LocalWallet, SignRequest, auto_approve
from .keys import LocalKey
from .messages import DecodedMessage, MessageCodecRegistry, default_registry
from .models import (
    AccountData,
    Algo,
    AminoMsg,
    AminoSignResponse,
    Coin,
    DirectSignResponse,
    FundsRequirement,
    Pubkey,
    SignDoc,
    SignMode,
    StdFee,
    StdSignature,
    StdSignDoc,
    TailwindSignOptions,
    TokenRef,
)
from .provider import ProviderRegistration, inject_provider
from .signer import (
    OfflineAminoSigner, OfflineDirectSigner, TailwindOfflineSigner, TailwindWallet
)

__all__ = [
    "__version__",
    # discovery
    "get_tailwind_wallet",
    "get_discovery",
    "reset_discovery_cache",
    "WalletDiscovery",
    "DiscoveryState",
    "DiscoverySettings",
    "READY_EVENT",
    "Host",
    "InMemoryHost",
    "ReadyState",
    "inject_provider",
    "ProviderRegistration",
    # signer contract
    "TailwindWallet",
    "TailwindOfflineSigner",
    "OfflineAminoSigner",
    "OfflineDirectSigner",
    # reference wallet
    "LocalWallet",
    "LocalSigner",
    "LocalKey",
    "SignRequest",
    "auto_approve",
    # data model
    "Coin",
    "AminoMsg",
    "StdFee",
    "StdSignDoc",
    "SignDoc",
    "Algo",
    "AccountData",
    "Pubkey",
    "StdSignature",
    "AminoSignResponse",
    "DirectSignResponse",
    "SignMode",
    "TokenRef",
    "FundsRequirement",
    "TailwindSignOptions",
    "MessageCodecRegistry",
    "DecodedMessage",
    "default_registry",
    "ChainConfig",
    # sign bytes
    "serialize_sign_doc",
    "sign_doc_to_json",
    "make_sign_bytes",
    "parse_sign_bytes",
    # errors
    "TailwindError",
    "NotEnabledError",
    "UnauthorizedError",
    "UserRejectedError",
    "ChainNotSupportedError",
    "AccountNotFoundError",
    "ChainMismatchError",
    "DiscoveryTimeoutError",
    "WalletAlreadyRegisteredError",
    "UnsupportedAlgorithmError",
    "CodecError",
]
