from typing import List, Optional

from eth_account.signers.base import BaseAccount
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.types import TxReceipt

from zkbridge.bridge import deposit as deposit_ops
from zkbridge.bridge import finalization
from zkbridge.bridge.fees import get_base_cost
from zkbridge.bridge.priority_op import (
    get_l2_hash_from_priority_op,
    get_l2_transaction_from_priority_op,
)
from zkbridge.bridge.topology import (
    get_base_token,
    get_bridgehub_address,
    is_eth_based_chain,
    l1_token_address,
    l2_token_address,
    resolve_topology,
)
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import (
    AllowanceParams,
    BridgeAddresses,
    ChainContext,
    DepositTransaction,
    FinalizeWithdrawalParams,
    PriorityOpConfirmation,
    RequestExecuteCallMsg,
    TransactionHash,
    TransactionOptions,
    TransactionReceipt,
    WithdrawalState,
)
from zkbridge.core.utils import DEPOSIT_GAS_PER_PUBDATA_LIMIT
from zkbridge.provider.clients import L1Client, L2Client


class WalletL1:
    """Binds an L1 signing account and both chain connections to the L1 side of the bridge."""

    def __init__(
        self,
        zksync_web3: AsyncWeb3,
        eth_web3: AsyncWeb3,
        l1_account: BaseAccount,
        settings: Optional[BridgeSettings] = None,
    ):
        self._settings = settings if settings is not None else DEFAULT_SETTINGS
        self._l1_account = l1_account
        self._l1 = L1Client(eth_web3, l1_account, self._settings)
        self._l2 = L2Client(zksync_web3, l1_account, self._settings)

    @property
    def address(self) -> HexStr:
        return self._l1_account.address

    async def get_bridge_contracts(self) -> BridgeAddresses:
        return await self._l2.get_bridge_contracts()

    async def resolve_topology(self):
        """Returns the ChainContext and the BridgeAddresses of the connected chain."""
        return await resolve_topology(self._l1, self._l2)

    async def get_chain_context(self) -> ChainContext:
        context, _ = await resolve_topology(self._l1, self._l2)
        return context

    async def get_bridgehub_contract_address(self) -> HexStr:
        return await get_bridgehub_address(self._l2)

    async def get_base_token(self) -> HexStr:
        return await get_base_token(self._l1, self._l2)

    async def is_eth_based_chain(self) -> bool:
        return await is_eth_based_chain(self._l1, self._l2)

    async def l2_token_address(self, token: HexStr) -> HexStr:
        return await l2_token_address(self._l2, token)

    async def l1_token_address(self, token: HexStr) -> HexStr:
        return await l1_token_address(self._l2, token)

    async def get_balance_l1(self, token: HexStr = None) -> int:
        """
        Returns the L1 balance of the account, in the base asset or in an ERC20 token.

        :param token: The address of the token. Defaults to ETH.
        """
        if token is None:
            return await self._l1.get_balance()
        return await self._l1.get_token_balance(token)

    async def get_allowance_l1(self, token: HexStr, bridge_address: HexStr = None) -> int:
        """
        Returns the amount of approved tokens for a specific L1 bridge.

        :param token: The Ethereum address of the token.
        :param bridge_address: The address of the bridge contract to be used. Defaults to the shared bridge.
        """
        return await deposit_ops.get_allowance_l1(
            self._l1, self._l2, token, bridge_address
        )

    async def approve_erc20(
        self,
        token: HexStr,
        amount: int,
        bridge_address: HexStr = None,
        options: TransactionOptions = None,
    ) -> TxReceipt:
        """
        Bridging ERC20 tokens from L1 requires approving the tokens to the zkSync L1 bridge.

        :param token: The Ethereum address of the token.
        :param amount: The amount of the token to be approved.
        :param bridge_address: The address of the bridge contract to be approved. Defaults to the shared bridge.
        """
        if bridge_address is None:
            bridge_address = (
                await self._l2.get_bridge_contracts()
            ).shared_l1_default_bridge
        return await deposit_ops.approve_erc20(
            self._l1, token, amount, bridge_address, options, self._settings
        )

    async def get_base_cost(
        self,
        l2_gas_limit: int,
        gas_per_pubdata_byte: int = DEPOSIT_GAS_PER_PUBDATA_LIMIT,
        gas_price: int = None,
    ) -> int:
        """
        Returns base cost for L2 transaction.

        :param l2_gas_limit: The gasLimit for the L2 contract call.
        :param gas_per_pubdata_byte: The L2 gas price for each published L1 calldata byte.
        :param gas_price: The L1 gas price of the L1 transaction that will send the request. Defaults to the current one.
        """
        if gas_price is None:
            gas_price = await self._l1.get_gas_price()
        return await get_base_cost(
            self._l1,
            await get_bridgehub_address(self._l2),
            await self._l2.get_chain_id(),
            gas_price,
            l2_gas_limit,
            gas_per_pubdata_byte,
        )

    async def prepare_deposit_tx(
        self, transaction: DepositTransaction
    ) -> deposit_ops.DepositPlan:
        return await deposit_ops.prepare_deposit_tx(
            self._l1, self._l2, transaction, self._settings
        )

    async def deposit(self, transaction: DepositTransaction) -> HexBytes:
        """
        Transfers the specified token from the associated account on the L1 network to the target account on the L2 network.

        :param transaction: DepositTransaction class. Not optional arguments are token(L1 token address) and amount.
        """
        return await deposit_ops.deposit(
            self._l1, self._l2, transaction, self._settings
        )

    async def estimate_gas_deposit(self, transaction: DepositTransaction) -> int:
        return await deposit_ops.estimate_gas_deposit(
            self._l1, self._l2, transaction, self._settings
        )

    async def get_deposit_allowance_params(
        self, token: HexStr, amount: int
    ) -> List[AllowanceParams]:
        return await deposit_ops.get_deposit_allowance_params(
            self._l1, self._l2, token, amount, self._settings
        )

    async def get_request_execute_transaction(
        self, transaction: RequestExecuteCallMsg
    ) -> dict:
        return await deposit_ops.get_request_execute_transaction(
            self._l1, self._l2, transaction, self._settings
        )

    async def request_execute(self, transaction: RequestExecuteCallMsg) -> HexBytes:
        """
        Request execution of L2 transaction from L1.

        :param transaction: RequestExecuteCallMsg class, required parameters are:
            contract_address(L2 contract to be called) and call_data (the input of the L2 transaction).
        """
        return await deposit_ops.request_execute(
            self._l1, self._l2, transaction, self._settings
        )

    async def get_l2_hash_from_priority_op(self, tx_receipt: TxReceipt) -> HexStr:
        return get_l2_hash_from_priority_op(
            tx_receipt, await self._l2.get_main_contract()
        )

    async def get_l2_transaction_from_priority_op(
        self, tx_receipt: TxReceipt
    ) -> TransactionReceipt:
        return await get_l2_transaction_from_priority_op(tx_receipt, self._l2)

    async def get_finalize_withdrawal_params(
        self, withdraw_hash: TransactionHash, index: int = 0
    ) -> FinalizeWithdrawalParams:
        return await finalization.get_finalize_withdrawal_params(
            self._l2, withdraw_hash, index
        )

    async def is_withdrawal_finalized(
        self, withdraw_hash: TransactionHash, index: int = 0
    ) -> bool:
        return await finalization.is_withdrawal_finalized(
            self._l1, self._l2, withdraw_hash, index
        )

    async def get_withdrawal_state(
        self, withdraw_hash: TransactionHash, index: int = 0
    ) -> WithdrawalState:
        return await finalization.get_withdrawal_state(
            self._l1, self._l2, withdraw_hash, index
        )

    async def finalize_withdrawal(
        self,
        withdraw_hash: TransactionHash,
        index: int = 0,
        options: TransactionOptions = None,
    ) -> HexBytes:
        """
        Proves the inclusion of the L2->L1 withdrawal message.

        :param withdraw_hash: Hash of the L2 transaction where the withdrawal was initiated.
        :param index: In case there were multiple withdrawals in one transaction, you may pass an index of the
            withdrawal you want to finalize.
        """
        return await finalization.finalize_withdrawal(
            self._l1, self._l2, withdraw_hash, index, options, self._settings
        )

    async def claim_failed_deposit(
        self, deposit_hash: TransactionHash, options: TransactionOptions = None
    ) -> HexBytes:
        """
        Withdraws funds from the initiated deposit, which failed when finalizing on L2.

        :param deposit_hash: The L2 transaction hash of the failed deposit.
        """
        return await finalization.claim_failed_deposit(
            self._l1, self._l2, deposit_hash, options, self._settings
        )

    async def get_priority_op_confirmation(
        self, tx_hash: TransactionHash, index: int = 0
    ) -> PriorityOpConfirmation:
        return await finalization.get_priority_op_confirmation(
            self._l2, tx_hash, index
        )
