"""
Pytest fixtures for the tailwind-connect tests.
"""
import pytest

from tailwind_connect._rate_limited_log import reset_rate_limits
from tailwind_connect.config import ChainConfig, DiscoverySettings
from tailwind_connect.discovery import reset_discovery_cache
from tailwind_connect.host import InMemoryHost
from tailwind_connect.keys import LocalKey
from tailwind_connect.local import LocalWallet
from tailwind_connect.models import (
    AminoMsg, Algo, Coin, SignDoc, StdFee, StdSignDoc
)

# Constants for testing
TEST_CHAIN = "cosmoshub-4"
TEST_DST_CHAIN = "osmosis-1"
TEST_ADDRESS = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"
TEST_OTHER_ADDRESS = "cosmos1zg69v7ys40x77y352eufp27daufrg4ncnjqz7q"
TEST_UNKNOWN_ADDRESS = "cosmos1unknownunknownunknownunknownunknownxyz"
TEST_SECP_KEY = bytes.fromhex("01" * 32)
TEST_ED_KEY = bytes.fromhex("02" * 32)
FAST_POLL = 0.01


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Clear module-level caches so tests do not leak into each other"""
    reset_discovery_cache()
    reset_rate_limits()
    yield
    reset_discovery_cache()
    reset_rate_limits()
    ChainConfig._chains_cache = None


@pytest.fixture
def host():
    return InMemoryHost()


@pytest.fixture
def fast_settings():
    return DiscoverySettings(poll_interval=FAST_POLL)


@pytest.fixture
def secp_key():
    return LocalKey.from_private_bytes(Algo.SECP256K1, TEST_SECP_KEY)


@pytest.fixture
def ed_key():
    return LocalKey.from_private_bytes(Algo.ED25519, TEST_ED_KEY)


@pytest.fixture
def approvals():
    """Sign requests seen by the wallet fixture's approver"""
    return []


@pytest.fixture
def wallet(secp_key, ed_key, approvals):
    """Enabled wallet with a secp256k1 and an ed25519 account on the test chain"""
    def approver(request):
        approvals.append(request)
        return request.sign_doc

    w = LocalWallet(chains=[TEST_CHAIN, TEST_DST_CHAIN], approver=approver)
    w.add_account(TEST_CHAIN, TEST_ADDRESS, key=secp_key)
    w.add_account(TEST_CHAIN, TEST_OTHER_ADDRESS, key=ed_key)
    w.enable(TEST_CHAIN)
    return w


@pytest.fixture
def amino_doc():
    return StdSignDoc(
        chain_id=TEST_CHAIN,
        account_number="42",
        sequence="7",
        fee=StdFee(amount=[Coin(denom="uatom", amount="5000")], gas="200000"),
        msgs=[
            AminoMsg(
                type="cosmos-sdk/MsgSend",
                value={
                    "from_address": TEST_ADDRESS,
                    "to_address": TEST_OTHER_ADDRESS,
                    "amount": [{"denom": "uatom", "amount": "1000000"}],
                },
            )
        ],
        memo="",
    )


@pytest.fixture
def direct_doc():
    return SignDoc(
        body_bytes=b"\x0a\x03abc",
        auth_info_bytes=b"\x12\x04\x0a\x02\x08\x01",
        chain_id=TEST_CHAIN,
        account_number=42,
    )
