"""
Tests for the in-memory reference wallet, including the end-to-end
negotiation-then-sign flow.
"""
import base64

import pytest

from tailwind_connect.encoding import make_sign_bytes, serialize_sign_doc
from tailwind_connect.exceptions import (
    AccountNotFoundError,
    ChainMismatchError,
    ChainNotSupportedError,
    NotEnabledError,
    UserRejectedError,
)
from tailwind_connect.host import InMemoryHost, ReadyState
from tailwind_connect.discovery import get_tailwind_wallet
from tailwind_connect.local import LocalWallet, SignRequest
from tailwind_connect.models import (
    AminoSignResponse, DirectSignResponse, SignMode, StdSignDoc
)
from tailwind_connect.provider import inject_provider
from tailwind_connect.signer import TailwindOfflineSigner

from tests.conftest import (
    TEST_ADDRESS, TEST_CHAIN, TEST_DST_CHAIN, TEST_OTHER_ADDRESS, TEST_UNKNOWN_ADDRESS
)


class TestAccounts:
    """Account enumeration and lookup."""

    @pytest.mark.asyncio
    async def test_get_accounts_in_insertion_order(self, wallet, secp_key, ed_key):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        accounts = await signer.get_accounts()
        assert [a.address for a in accounts] == [TEST_ADDRESS, TEST_OTHER_ADDRESS]
        assert accounts[0].pubkey == secp_key.public_bytes
        assert accounts[1].pubkey == ed_key.public_bytes

    @pytest.mark.asyncio
    async def test_get_accounts_not_enabled(self, secp_key):
        w = LocalWallet(chains=[TEST_CHAIN])
        w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
        signer = await w.get_offline_signer(TEST_CHAIN)
        with pytest.raises(NotEnabledError):
            await signer.get_accounts()

    @pytest.mark.asyncio
    async def test_enabled_without_accounts_is_not_enabled(self):
        w = LocalWallet(chains=[TEST_CHAIN])
        w.enable(TEST_CHAIN)
        signer = await w.get_offline_signer(TEST_CHAIN)
        with pytest.raises(NotEnabledError):
            await signer.get_accounts()

    @pytest.mark.asyncio
    async def test_disable_revokes_access(self, wallet):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        wallet.disable(TEST_CHAIN)
        with pytest.raises(NotEnabledError):
            await signer.get_accounts()

    @pytest.mark.asyncio
    async def test_get_account(self, wallet):
        account = await wallet.get_account(TEST_CHAIN, TEST_OTHER_ADDRESS)
        assert account.address == TEST_OTHER_ADDRESS
        assert account.algo.value == "ed25519"

    @pytest.mark.asyncio
    async def test_get_account_unknown(self, wallet):
        with pytest.raises(AccountNotFoundError):
            await wallet.get_account(TEST_CHAIN, TEST_UNKNOWN_ADDRESS)

    @pytest.mark.asyncio
    async def test_unsupported_chain(self, wallet):
        with pytest.raises(ChainNotSupportedError) as exc_info:
            await wallet.get_offline_signer("unknown-1")
        assert exc_info.value.chain_id == "unknown-1"
        with pytest.raises(ChainNotSupportedError):
            await wallet.get_account("unknown-1", TEST_ADDRESS)

    def test_duplicate_account_rejected(self, wallet):
        with pytest.raises(ValueError):
            wallet.add_account(TEST_CHAIN, TEST_ADDRESS)

    @pytest.mark.parametrize("address", ["osmo1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5", "cosmosqypq", ""])
    def test_add_account_wrong_prefix(self, wallet, address):
        with pytest.raises(ValueError):
            wallet.add_account(TEST_CHAIN, address)

    def test_add_account_unregistered_chain_skips_prefix_check(self):
        w = LocalWallet(chains=["localnet-1"])
        account = w.add_account("localnet-1", "anything")
        assert account.address == "anything"

    def test_add_account_unsupported_chain(self, wallet):
        with pytest.raises(ChainNotSupportedError):
            wallet.add_account("unknown-1", TEST_ADDRESS)

    def test_remove_account(self, wallet):
        wallet.remove_account(TEST_CHAIN, TEST_OTHER_ADDRESS)
        assert [a.address for a in wallet.accounts_for(TEST_CHAIN)] == [TEST_ADDRESS]
        with pytest.raises(AccountNotFoundError):
            wallet.remove_account(TEST_CHAIN, TEST_OTHER_ADDRESS)

    def test_default_chains_from_registry(self):
        w = LocalWallet()
        assert TEST_CHAIN in w.supported_chains
        assert TEST_DST_CHAIN in w.supported_chains

    @pytest.mark.asyncio
    async def test_signer_instance_reused_per_chain(self, wallet):
        first = await wallet.get_offline_signer(TEST_CHAIN)
        second = await wallet.get_offline_signer(TEST_CHAIN)
        assert first is second
        assert isinstance(first, TailwindOfflineSigner)
        assert first.chain_id == TEST_CHAIN


class TestAminoSigning:
    """sign_amino through the reference wallet."""

    @pytest.mark.asyncio
    async def test_signature_verifies(self, wallet, secp_key, amino_doc):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        response = await signer.sign_amino(TEST_ADDRESS, amino_doc)

        assert isinstance(response, AminoSignResponse)
        assert response.signed == amino_doc
        assert response.signature.pub_key.type == "tendermint/PubKeySecp256k1"
        assert base64.b64decode(response.signature.pub_key.value) == secp_key.public_bytes
        raw = base64.b64decode(response.signature.signature)
        assert secp_key.verify(serialize_sign_doc(amino_doc), raw)

    @pytest.mark.asyncio
    async def test_ed25519_account(self, wallet, ed_key, amino_doc):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        response = await signer.sign_amino(TEST_OTHER_ADDRESS, amino_doc)
        assert response.signature.pub_key.type == "tendermint/PubKeyEd25519"
        raw = base64.b64decode(response.signature.signature)
        assert ed_key.verify(serialize_sign_doc(amino_doc), raw)

    @pytest.mark.asyncio
    async def test_approver_may_modify_document(self, secp_key, amino_doc):
        def approver(request: SignRequest):
            return request.sign_doc.model_copy(update={"memo": "edited by wallet"})

        w = LocalWallet(chains=[TEST_CHAIN], approver=approver)
        w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
        w.enable(TEST_CHAIN)
        signer = await w.get_offline_signer(TEST_CHAIN)

        response = await signer.sign_amino(TEST_ADDRESS, amino_doc)

        assert response.signed != amino_doc
        assert response.signed.memo == "edited by wallet"
        assert isinstance(response.signed, StdSignDoc)
        raw = base64.b64decode(response.signature.signature)
        # The signature covers the returned document, not the submitted one
        assert secp_key.verify(serialize_sign_doc(response.signed), raw)
        assert not secp_key.verify(serialize_sign_doc(amino_doc), raw)

    @pytest.mark.asyncio
    async def test_async_approver_rejects(self, secp_key, amino_doc):
        async def approver(request):
            raise UserRejectedError("declined")

        w = LocalWallet(chains=[TEST_CHAIN], approver=approver)
        w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
        w.enable(TEST_CHAIN)
        signer = await w.get_offline_signer(TEST_CHAIN)

        with pytest.raises(UserRejectedError):
            await signer.sign_amino(TEST_ADDRESS, amino_doc)

    @pytest.mark.asyncio
    async def test_approver_returning_none_is_rejection(self, secp_key, amino_doc):
        w = LocalWallet(chains=[TEST_CHAIN], approver=lambda request: None)
        w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
        w.enable(TEST_CHAIN)
        signer = await w.get_offline_signer(TEST_CHAIN)
        with pytest.raises(UserRejectedError):
            await signer.sign_amino(TEST_ADDRESS, amino_doc)

    @pytest.mark.asyncio
    async def test_approver_cannot_retarget_chain(self, secp_key, amino_doc):
        w = LocalWallet(
            chains=[TEST_CHAIN],
            approver=lambda r: r.sign_doc.model_copy(update={"chain_id": TEST_DST_CHAIN}),
        )
        w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
        w.enable(TEST_CHAIN)
        signer = await w.get_offline_signer(TEST_CHAIN)
        with pytest.raises(ChainMismatchError):
            await signer.sign_amino(TEST_ADDRESS, amino_doc)

    @pytest.mark.asyncio
    async def test_unknown_signer_address_rejected(self, wallet, approvals, amino_doc):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        accounts = await signer.get_accounts()
        assert TEST_UNKNOWN_ADDRESS not in [a.address for a in accounts]

        with pytest.raises(AccountNotFoundError):
            await signer.sign_amino(TEST_UNKNOWN_ADDRESS, amino_doc)
        assert approvals == []


class TestDirectSigning:
    """sign_direct and the negotiate-then-sign flow."""

    @pytest.mark.asyncio
    async def test_negotiation_then_sign(self, wallet, approvals, secp_key, direct_doc):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        signer.declare_funds_required({
            "token": {"denom": "uatom", "chain": "cosmoshub-4"},
            "amount": "1000000",
            "dst_chain": "osmosis-1",
        })
        signer.declare_max_gas_estimate(200000)

        response = await signer.sign_direct(TEST_ADDRESS, direct_doc)

        assert isinstance(response, DirectSignResponse)
        account = await wallet.get_account(TEST_CHAIN, TEST_ADDRESS)
        assert response.signature.pub_key == account.to_pubkey()
        raw = base64.b64decode(response.signature.signature)
        assert secp_key.verify(make_sign_bytes(response.signed), raw)

        (request,) = approvals
        assert request.mode is SignMode.DIRECT
        assert request.options.max_gas == 200000
        (funds,) = request.options.funds_required
        assert funds.token.denom == "uatom"
        assert funds.token.chain == "cosmoshub-4"
        assert funds.amount == "1000000"
        assert funds.dst_chain == "osmosis-1"

    @pytest.mark.asyncio
    async def test_hints_shared_across_signer_lookups(self, wallet, approvals, direct_doc):
        (await wallet.get_offline_signer(TEST_CHAIN)).declare_max_gas_estimate(5000)
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        await signer.sign_direct(TEST_ADDRESS, direct_doc)
        assert approvals[-1].options.max_gas == 5000

    @pytest.mark.asyncio
    async def test_wallet_keeps_no_request_history(self, wallet, direct_doc):
        signer = await wallet.get_offline_signer(TEST_CHAIN)
        for _ in range(3):
            await signer.sign_direct(TEST_ADDRESS, direct_doc)
        assert not hasattr(wallet, "requests")
        assert signer._address_locks == {}

    @pytest.mark.asyncio
    async def test_sign_direct_wrong_chain(self, wallet, direct_doc):
        wallet.add_account(TEST_DST_CHAIN, "osmo1abc")
        wallet.enable(TEST_DST_CHAIN)
        signer = await wallet.get_offline_signer(TEST_DST_CHAIN)
        with pytest.raises(ChainMismatchError):
            await signer.sign_direct("osmo1abc", direct_doc)


class TestEndToEnd:
    """Discovery through signing."""

    @pytest.mark.asyncio
    async def test_discover_then_sign(self, wallet, direct_doc):
        host = InMemoryHost(ReadyState.INTERACTIVE)
        inject_provider(host, wallet)

        host.set_ready_state(ReadyState.COMPLETE)
        handle = await get_tailwind_wallet(host, timeout=1)
        signer = await handle.get_offline_signer(TEST_CHAIN)
        signer.declare_max_gas_estimate(200000)
        response = await signer.sign_direct(TEST_ADDRESS, direct_doc)

        assert response.signed == direct_doc
        assert host.dispatched == ["tailwind.readystatechange"]
