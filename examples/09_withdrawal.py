import asyncio
import os

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from zkbridge.account.wallet import Wallet
from zkbridge.core.types import WithdrawTransaction
from zkbridge.module.module_builder import ZkSyncBuilder


async def main():
    # Get the private key from OS environment variables
    private_key = bytes.fromhex(os.environ.get("PRIVATE_KEY"))

    zk_web3 = ZkSyncBuilder.build(os.environ.get("ZKSYNC_PROVIDER", "https://sepolia.era.zksync.dev"))
    eth_web3 = AsyncWeb3(AsyncHTTPProvider(os.environ.get("ETH_PROVIDER", "https://rpc.ankr.com/eth_sepolia")))

    account: LocalAccount = Account.from_key(private_key)
    wallet = Wallet(zk_web3, eth_web3, account)

    # Withdraw the base token of the chain
    amount = 0.01
    tx_hash = await wallet.withdraw(
        WithdrawTransaction(token=None, amount=Web3.to_wei(amount, "ether"))
    )
    receipt = await zk_web3.eth.wait_for_transaction_receipt(tx_hash)
    if not receipt["status"]:
        raise RuntimeError("Withdraw transaction on L2 network failed")

    print(f"Withdraw transaction: {tx_hash.hex()}")
    print(f"Withdrawal state: {(await wallet.get_withdrawal_state(tx_hash)).name}")


if __name__ == "__main__":
    asyncio.run(main())
