"""
Data models for tailwind-connect.

Every record here is an immutable value passed across the dApp/wallet
boundary. Field names are Python style; the wire names are accepted as
aliases and reproduced with ``model_dump(by_alias=True)``.
"""
import base64
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_UINT64 = 2 ** 64 - 1


def _check_uint_string(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.isdigit() or not value.isascii():
        raise ValueError(f"{field_name} must be a non-negative integer string, got {value!r}")
    return value


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )


class Coin(_Record):
    """A fungible amount of a denom"""
    denom: str
    amount: str

    @field_validator("amount")
    @classmethod
    def _amount_is_uint(cls, v: str) -> str:
        return _check_uint_string(v, "amount")


class AminoMsg(_Record):
    """
    A single Amino message.

    ``type`` is the discriminator; ``value`` stays opaque until it is decoded
    with a registered codec (see :mod:`tailwind_connect.messages`).
    """
    type: str = Field(..., min_length=1)
    value: Any = None


class StdFee(_Record):
    """Legacy (Amino) fee envelope"""
    amount: Tuple[Coin, ...] = ()
    gas: str
    # The granter address that is used for paying with feegrants
    granter: Optional[str] = None
    # The fee payer address. The payer must have signed the transaction.
    payer: Optional[str] = None

    @field_validator("gas")
    @classmethod
    def _gas_is_uint(cls, v: str) -> str:
        return _check_uint_string(v, "gas")


class StdSignDoc(_Record):
    """Amino-encoded signable document"""
    chain_id: str
    account_number: str
    sequence: str
    fee: StdFee
    msgs: Tuple[AminoMsg, ...] = ()
    memo: str = ""

    @field_validator("account_number", "sequence")
    @classmethod
    def _uint_fields(cls, v: str, info) -> str:
        return _check_uint_string(v, info.field_name)


class SignDoc(_Record):
    """
    Protobuf ("Direct") signable document.

    ``body_bytes`` and ``auth_info_bytes`` are the protobuf serialisations of
    a TxBody and an AuthInfo; they are never decoded here.
    """
    body_bytes: bytes = Field(..., alias="bodyBytes")
    auth_info_bytes: bytes = Field(..., alias="authInfoBytes")
    chain_id: str = Field(..., alias="chainId")
    account_number: int = Field(..., alias="accountNumber", ge=0, le=MAX_UINT64)


class Algo(str, Enum):
    """Key algorithms an account may use."""
    SECP256K1 = "secp256k1"
    ED25519 = "ed25519"
    SR25519 = "sr25519"


PUBKEY_TYPES: Dict[Algo, str] = {
    Algo.SECP256K1: "tendermint/PubKeySecp256k1",
    Algo.ED25519: "tendermint/PubKeyEd25519",
    Algo.SR25519: "tendermint/PubKeySr25519",
}


class Pubkey(_Record):
    """Tagged Amino public key"""
    type: str
    value: Any = None


class AccountData(_Record):
    """One account controlled by the wallet"""
    # A printable address (typically bech32 encoded)
    address: str = Field(..., min_length=1)
    algo: Algo
    pubkey: bytes

    def to_pubkey(self) -> Pubkey:
        """Render this account's public key in its tagged Amino form."""
        return Pubkey(
            type=PUBKEY_TYPES[self.algo],
            value=base64.b64encode(self.pubkey).decode("ascii"),
        )


class StdSignature(_Record):
    """A produced signature"""
    pub_key: Pubkey
    signature: str


class AminoSignResponse(_Record):
    """
    Result of an Amino signing request.

    ``signed`` is the document that was actually signed. It may differ from
    the document that was submitted; callers must broadcast ``signed``.
    """
    signed: StdSignDoc
    signature: StdSignature


class DirectSignResponse(_Record):
    """
    Result of a Direct signing request.

    Same substitution rule as :class:`AminoSignResponse`.
    """
    signed: SignDoc
    signature: StdSignature


class SignMode(str, Enum):
    """Signable encodings."""
    AMINO = "amino"
    DIRECT = "direct"


class TokenRef(_Record):
    """A token identified by denom and the chain it lives on"""
    denom: str = Field(..., min_length=1)
    chain: str = Field(..., min_length=1)


class FundsRequirement(_Record):
    """
    Funds an upcoming transaction needs.

    ``dst_chain`` names the chain the funds must be available on, which may
    differ from ``token.chain`` when the wallet has to bridge them. ``None``
    means the token's own chain.
    """
    token: TokenRef
    amount: str
    dst_chain: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def _amount_is_uint(cls, v: str) -> str:
        return _check_uint_string(v, "amount")

    @property
    def key(self) -> Tuple[str, str, Optional[str]]:
        return (self.token.denom, self.token.chain, self.dst_chain)


class TailwindSignOptions(_Record):
    """Negotiation parameters accompanying a signing intent"""
    # gas estimation for tx you want to sign
    max_gas: Optional[int] = Field(None, alias="maxGas", ge=0)
    sign_mode: SignMode = Field(SignMode.DIRECT, alias="signMode")
    # funds required for tx you want to sign
    funds_required: Tuple[FundsRequirement, ...] = Field((), alias="fundsRequired")

    @property
    def is_empty(self) -> bool:
        return self.max_gas is None and not self.funds_required
