#!/usr/bin/env python3
"""
Simple example of discovering the Tailwind wallet and signing with it.
"""
import asyncio
import base64
import logging
import os

from tailwind_connect import (
    DiscoverySettings,
    InMemoryHost,
    LocalWallet,
    ReadyState,
    SignDoc,
    TailwindError,
    WalletDiscovery,
    get_discovery,
    get_tailwind_wallet,
    inject_provider,
    make_sign_bytes,
)

CHAIN_ID = "cosmoshub-4"
ADDRESS = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"


def install_wallet(host: InMemoryHost, wallet: LocalWallet, settings: DiscoverySettings) -> WalletDiscovery:
    """Inject the wallet into the host's discovery, created with ``settings``"""
    discovery = get_discovery(host, settings)
    inject_provider(host, wallet, discovery)
    return discovery


async def load_page(host: InMemoryHost) -> None:
    """Pretend the page takes a moment to finish loading"""
    await asyncio.sleep(0.2)
    host.set_ready_state(ReadyState.INTERACTIVE)
    await asyncio.sleep(0.2)
    host.set_ready_state(ReadyState.COMPLETE)


async def main():
    """
    Demonstrate the dApp side of Tailwind.

    This example shows how to:
    1. Wait for the wallet to be injected
    2. Declare the funds and gas the transaction needs
    3. Request a Direct signature
    """
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    # Wallet side: an extension would inject this into the page
    host = InMemoryHost()
    wallet = LocalWallet(chains=[CHAIN_ID, "osmosis-1"])
    account = wallet.add_account(CHAIN_ID, ADDRESS)
    wallet.enable(CHAIN_ID)
    settings = DiscoverySettings.from_env()
    install_wallet(host, wallet, settings)

    # dApp side
    page = asyncio.create_task(load_page(host))
    try:
        tailwind = await get_tailwind_wallet(host, timeout=5)
    except TailwindError as e:
        print(f"ERROR: {e}")
        return
    await page

    signer = await tailwind.get_offline_signer(CHAIN_ID)
    print("Accounts:", [a.address for a in await signer.get_accounts()])

    signer.declare_funds_required({
        "token": {"denom": "uatom", "chain": CHAIN_ID},
        "amount": "1000000",
        "dst_chain": "osmosis-1",
    })
    signer.declare_max_gas_estimate(200000)

    sign_doc = SignDoc(
        body_bytes=b"\x0a\x03abc",
        auth_info_bytes=b"\x12\x04\x0a\x02\x08\x01",
        chain_id=CHAIN_ID,
        account_number=42,
    )
    response = await signer.sign_direct(account.address, sign_doc)

    print("Sign bytes:", make_sign_bytes(response.signed).hex())
    print("Public key:", response.signature.pub_key.value)
    print("Signature:", base64.b64decode(response.signature.signature).hex())


if __name__ == "__main__":
    asyncio.run(main())
