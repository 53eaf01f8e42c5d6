from typing import Optional

from eth_account.signers.base import BaseAccount
from web3 import AsyncWeb3

from zkbridge.account.wallet_l1 import WalletL1
from zkbridge.account.wallet_l2 import WalletL2
from zkbridge.core.settings import BridgeSettings


class Wallet(WalletL1, WalletL2):
    def __init__(
        self,
        zksync_web3: AsyncWeb3,
        eth_web3: AsyncWeb3,
        l1_account: BaseAccount,
        settings: Optional[BridgeSettings] = None,
    ):
        WalletL1.__init__(self, zksync_web3, eth_web3, l1_account, settings)
        WalletL2.__init__(self, zksync_web3, eth_web3, l1_account, settings)

    def sign_transaction(self, tx):
        return self._l1_account.sign_transaction(tx)
