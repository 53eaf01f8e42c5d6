import asyncio
import os

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from zkbridge.account.wallet import Wallet
from zkbridge.core.types import DepositTransaction
from zkbridge.core.utils import LEGACY_ETH_ADDRESS
from zkbridge.module.module_builder import ZkSyncBuilder


async def deposit(wallet: Wallet, eth_web3: AsyncWeb3, amount: float):
    """
    Deposit ETH from L1 to L2 network
    :param wallet:
        Wallet holding both L1 and L2 connections
    :param eth_web3:
        Instance of Ethereum Web3 provider
    :param amount:
        How much ETH the deposit will contain
    :return:
        Deposit transaction hashes on L1 and L2 networks
    """
    print("Executing deposit transaction on L1 network")
    l1_tx_hash = await wallet.deposit(
        DepositTransaction(token=LEGACY_ETH_ADDRESS, amount=Web3.to_wei(amount, "ether"))
    )
    l1_tx_receipt = await eth_web3.eth.wait_for_transaction_receipt(l1_tx_hash)
    if not l1_tx_receipt["status"]:
        raise RuntimeError("Deposit transaction on L1 network failed")

    print("Waiting for deposit transaction on L2 network to be finalized (5-7 minutes)")
    l2_tx_receipt = await wallet.get_l2_transaction_from_priority_op(l1_tx_receipt)
    if not l2_tx_receipt.status:
        raise RuntimeError("Deposit transaction on L2 network failed")

    return l1_tx_receipt["transactionHash"].hex(), l2_tx_receipt.transaction_hash


async def main():
    # Get the private key from OS environment variables
    private_key = bytes.fromhex(os.environ.get("PRIVATE_KEY"))

    zk_web3 = ZkSyncBuilder.build(os.environ.get("ZKSYNC_PROVIDER", "https://sepolia.era.zksync.dev"))
    eth_web3 = AsyncWeb3(AsyncHTTPProvider(os.environ.get("ETH_PROVIDER", "https://rpc.ankr.com/eth_sepolia")))

    account: LocalAccount = Account.from_key(private_key)
    wallet = Wallet(zk_web3, eth_web3, account)

    print(f"L1 balance before deposit: {Web3.from_wei(await wallet.get_balance_l1(), 'ether')}")
    l1_tx_hash, l2_tx_hash = await deposit(wallet, eth_web3, 0.01)

    print(f"L1 transaction: {l1_tx_hash}")
    print(f"L2 transaction: {l2_tx_hash}")
    print(f"L2 balance after deposit: {Web3.from_wei(await wallet.get_balance(), 'ether')}")


if __name__ == "__main__":
    asyncio.run(main())
