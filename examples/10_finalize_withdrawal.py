import asyncio
import os

from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3

from zkbridge.account.wallet import Wallet
from zkbridge.core.types import WithdrawalState
from zkbridge.module.module_builder import ZkSyncBuilder


async def finalize_withdraw(wallet: Wallet, eth_web3: AsyncWeb3, withdraw_tx_hash: HexBytes):
    """
    Execute finalize withdraw transaction on L1 network
    :param wallet:
        Wallet holding both L1 and L2 connections
    :param eth_web3:
        Instance of Ethereum Web3 provider
    :param withdraw_tx_hash
        Hash of withdraw transaction on L2 network
    :return:
        TxReceipt of finalize withdraw transaction on L1 network
    """
    state = await wallet.get_withdrawal_state(withdraw_tx_hash)
    if state is WithdrawalState.FINALIZED:
        raise RuntimeError("Withdrawal is already finalized")
    if state is WithdrawalState.NOT_YET_PROCESSABLE:
        raise RuntimeError("Batch with the withdrawal is not yet executed on L1")

    tx_hash = await wallet.finalize_withdrawal(withdraw_tx_hash)
    tx_receipt = await eth_web3.eth.wait_for_transaction_receipt(tx_hash)

    # Check if finalize withdraw transaction was successful
    if not tx_receipt["status"]:
        raise RuntimeError("Finalize withdraw transaction L1 network failed")
    return tx_receipt


async def main():
    # Get the private key from OS environment variables
    private_key = bytes.fromhex(os.environ.get("PRIVATE_KEY"))

    # Get the withdrawal transaction hash from OS environment variables
    withdraw_tx_hash = HexBytes.fromhex(os.environ.get("WITHDRAW_TX_HASH"))

    zk_web3 = ZkSyncBuilder.build(os.environ.get("ZKSYNC_PROVIDER", "https://sepolia.era.zksync.dev"))
    eth_web3 = AsyncWeb3(AsyncHTTPProvider(os.environ.get("ETH_PROVIDER", "https://rpc.ankr.com/eth_sepolia")))

    account: LocalAccount = Account.from_key(private_key)
    wallet = Wallet(zk_web3, eth_web3, account)

    eth_tx_receipt = await finalize_withdraw(wallet, eth_web3, withdraw_tx_hash)
    print(f"Finalize withdraw transaction: {eth_tx_receipt['transactionHash'].hex()}")


if __name__ == "__main__":
    asyncio.run(main())
