"""
Withdraws the base token while an approval-based paymaster pays the L2 fee.
The paymaster takes one unit of the approval token from the account in exchange.
"""
import asyncio
import os

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from zkbridge.account.wallet import Wallet
from zkbridge.core.types import WithdrawTransaction
from zkbridge.manage_contracts.paymaster_utils import (
    get_approval_based_paymaster_input,
    get_paymaster_params,
)
from zkbridge.module.module_builder import ZkSyncBuilder


async def main():
    private_key = bytes.fromhex(os.environ.get("PRIVATE_KEY"))
    paymaster = Web3.to_checksum_address(os.environ.get("PAYMASTER"))
    approval_token = Web3.to_checksum_address(os.environ.get("APPROVAL_TOKEN"))

    zk_web3 = ZkSyncBuilder.build(os.environ.get("ZKSYNC_PROVIDER", "https://sepolia.era.zksync.dev"))
    eth_web3 = AsyncWeb3(AsyncHTTPProvider(os.environ.get("ETH_PROVIDER", "https://rpc.ankr.com/eth_sepolia")))

    account: LocalAccount = Account.from_key(private_key)
    wallet = Wallet(zk_web3, eth_web3, account)

    paymaster_params = get_paymaster_params(
        paymaster,
        get_approval_based_paymaster_input(approval_token, min_allowance=1),
    )
    tx_hash = await wallet.withdraw(
        WithdrawTransaction(
            token=None,
            amount=Web3.to_wei(0.001, "ether"),
            paymaster_params=paymaster_params,
        )
    )
    receipt = await zk_web3.eth.wait_for_transaction_receipt(tx_hash)
    if not receipt["status"]:
        raise RuntimeError("Withdraw transaction on L2 network failed")

    print(f"Withdraw transaction: {tx_hash.hex()}")


if __name__ == "__main__":
    asyncio.run(main())
