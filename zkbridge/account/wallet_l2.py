from typing import Optional

from eth_account.signers.base import BaseAccount
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import AsyncWeb3

from zkbridge.bridge import withdraw as withdraw_ops
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import WithdrawTransaction
from zkbridge.provider.clients import L2Client


class WalletL2:
    def __init__(
        self,
        zksync_web3: AsyncWeb3,
        eth_web3: AsyncWeb3,
        l1_account: BaseAccount,
        settings: Optional[BridgeSettings] = None,
    ):
        self._settings = settings if settings is not None else DEFAULT_SETTINGS
        self._l1_account = l1_account
        self._l2 = L2Client(zksync_web3, l1_account, self._settings)

    async def get_balance(self, token_address: HexStr = None) -> int:
        """
        Returns the L2 balance of the account.

        :param token_address: The L2 token address to query balance for. Defaults to the base token.
        """
        if token_address is None:
            return await self._l2.get_balance()
        return await self._l2.get_token_balance(token_address)

    async def get_withdraw_transaction(self, tx: WithdrawTransaction) -> dict:
        return await withdraw_ops.get_withdraw_transaction(self._l2, tx)

    async def withdraw(self, tx: WithdrawTransaction) -> HexBytes:
        """
        Initiates the withdrawal process which withdraws the base token or any bridged token
        from the associated account on L2 network to the target account on L1 network.

        :param tx: WithdrawTransaction class. Required parameters are token(HexStr) and amount(int).

        Returns:
        - Withdrawal hash.
        """
        return await withdraw_ops.withdraw(self._l2, tx)
