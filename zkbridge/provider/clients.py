import logging
from typing import Any, Optional

from eth_account.signers.base import BaseAccount
from eth_typing import HexStr
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.types import TxReceipt

from zkbridge.core.errors import AccountNotFoundError, ChainNotConfiguredError
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import (
    BridgeAddresses,
    TransactionHash,
    TransactionReceipt,
    ZksMessageProof,
)
from zkbridge.core.utils import MAX_PRIORITY_FEE_PER_GAS, scale_gas_limit, to_hex_str
from zkbridge.manage_contracts.contract_encoder_base import ContractEncoder
from zkbridge.manage_contracts.utils import ERC20Encoder
from zkbridge.transaction.transaction712 import Transaction712


class ChainClient:
    """
    Thin async wrapper over an AsyncWeb3 connection and an optional signing account.
    Every bridge operation talks to the chains through one of these.
    """

    name = "L1"
    logger = logging.getLogger("ChainClient")

    def __init__(
        self,
        web3: AsyncWeb3,
        account: Optional[BaseAccount] = None,
        settings: Optional[BridgeSettings] = None,
        chain_id: Optional[int] = None,
    ):
        self.web3 = web3
        self.account = account
        self.settings = settings if settings is not None else DEFAULT_SETTINGS
        self._chain_id = chain_id
        self._erc20 = ERC20Encoder()

    def require_account(self) -> BaseAccount:
        if self.account is None:
            raise AccountNotFoundError(self.name)
        return self.account

    @property
    def address(self) -> HexStr:
        return self.require_account().address

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self.web3.eth.chain_id
        return self._chain_id

    async def call(self, to: HexStr, data: HexStr, block_identifier="latest") -> bytes:
        tx = {"to": to_checksum_address(to), "data": data}
        return await self.web3.eth.call(tx, block_identifier)

    async def read(
        self, encoder: ContractEncoder, address: HexStr, fn_name: str, *args
    ) -> Any:
        data = encoder.encode_method(fn_name, args)
        self.logger.debug("%s eth_call %s.%s%s", self.name, address, fn_name, args)
        raw = await self.call(address, data)
        return encoder.decode_output(fn_name, raw)

    async def estimate_gas(self, tx: dict) -> int:
        tx = {k: v for k, v in tx.items() if k != "gas"}
        for key in ("to", "from"):
            if tx.get(key) is not None:
                tx[key] = to_checksum_address(tx[key])
        return await self.web3.eth.estimate_gas(tx)

    async def get_nonce(self) -> int:
        return await self.web3.eth.get_transaction_count(self.address, "pending")

    async def get_gas_price(self) -> int:
        return await self.web3.eth.gas_price

    async def get_max_priority_fee(self) -> int:
        return await self.web3.eth.max_priority_fee

    async def get_block(self, block_identifier="latest"):
        return await self.web3.eth.get_block(block_identifier)

    async def get_balance(self, address: HexStr = None) -> int:
        if address is None:
            address = self.address
        return await self.web3.eth.get_balance(to_checksum_address(address))

    async def get_token_balance(self, token: HexStr, owner: HexStr = None) -> int:
        if owner is None:
            owner = self.address
        return await self.read(self._erc20, token, "balanceOf", owner)

    async def get_allowance(
        self, token: HexStr, spender: HexStr, owner: HexStr = None
    ) -> int:
        if owner is None:
            owner = self.address
        return await self.read(self._erc20, token, "allowance", owner, spender)

    async def send_transaction(self, tx: dict) -> HexBytes:
        """
        Fills nonce, chain id, gas and fee fields that are missing, signs the
        transaction with the client account and broadcasts it.
        """
        account = self.require_account()
        tx = dict(tx)
        tx["from"] = account.address
        tx["to"] = to_checksum_address(tx["to"])
        if tx.get("chainId") is None:
            tx["chainId"] = await self.get_chain_id()
        if tx.get("nonce") is None:
            tx["nonce"] = await self.get_nonce()
        if tx.get("gasPrice") is None and tx.get("maxFeePerGas") is None:
            tx["gasPrice"] = await self.get_gas_price()
        if tx.get("gas") is None:
            tx["gas"] = scale_gas_limit(
                await self.estimate_gas(tx), self.settings.gas_limit_scale
            )

        signed = account.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        self.logger.info(
            "%s transaction %s sent to %s", self.name, to_hex_str(tx_hash), tx["to"]
        )
        return tx_hash

    async def wait_for_transaction_receipt(self, tx_hash: TransactionHash) -> TxReceipt:
        return await self.web3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self.settings.receipt_timeout,
            poll_latency=self.settings.receipt_poll_latency,
        )


class L1Client(ChainClient):
    name = "L1"
    logger = logging.getLogger("L1Client")


class L2Client(ChainClient):
    """Client of the rollup node, exposing the zks_* namespace besides plain eth calls."""

    name = "L2"
    logger = logging.getLogger("L2Client")

    @property
    def zksync(self):
        return self.web3.zksync

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            if self.web3 is None:
                raise ChainNotConfiguredError()
            self._chain_id = await self.web3.eth.chain_id
        if not self._chain_id:
            raise ChainNotConfiguredError()
        return self._chain_id

    async def get_bridgehub_address(self) -> HexStr:
        return await self.zksync.zks_get_bridgehub_contract_address()

    async def get_main_contract(self) -> HexStr:
        return await self.zksync.zks_main_contract()

    async def get_bridge_contracts(self) -> BridgeAddresses:
        return await self.zksync.zks_get_bridge_contracts()

    async def get_base_token_l1_address(self) -> HexStr:
        return await self.zksync.zks_get_base_token_contract_address()

    async def get_log_proof(
        self, tx_hash: TransactionHash, index: Optional[int] = None
    ) -> Optional[ZksMessageProof]:
        return await self.zksync.zks_get_log_proof(tx_hash, index)

    async def send_transaction(self, tx: dict) -> HexBytes:
        if tx.get("eip712Meta") is None:
            return await super().send_transaction(tx)
        return await self.send_eip712_transaction(tx)

    async def send_eip712_transaction(self, tx: dict) -> HexBytes:
        """
        Sends a type 113 transaction built from tx and its eip712Meta, signed
        over typed data. Gas comes from eth_estimateGas with the meta attached.
        """
        account = self.require_account()
        tx = dict(tx)
        meta = tx["eip712Meta"]
        tx["type"] = Transaction712.EIP_712_TX_TYPE
        tx["from"] = account.address
        tx["to"] = to_checksum_address(tx["to"])
        tx.setdefault("value", 0)
        if tx.get("chainId") is None:
            tx["chainId"] = await self.get_chain_id()
        if tx.get("nonce") is None:
            tx["nonce"] = await self.get_nonce()
        gas_price = tx.pop("gasPrice", None)
        if tx.get("maxFeePerGas") is None:
            tx["maxFeePerGas"] = (
                gas_price if gas_price is not None else await self.get_gas_price()
            )
        if tx.get("maxPriorityFeePerGas") is None:
            tx["maxPriorityFeePerGas"] = min(
                MAX_PRIORITY_FEE_PER_GAS, tx["maxFeePerGas"]
            )
        if tx.get("gas") is None:
            tx["gas"] = scale_gas_limit(
                await self.zksync.eth_estimate_gas(tx), self.settings.gas_limit_scale
            )

        tx_712 = Transaction712(
            chain_id=tx["chainId"],
            nonce=tx["nonce"],
            gas_limit=tx["gas"],
            to=tx["to"],
            value=tx["value"],
            data=tx["data"],
            maxPriorityFeePerGas=tx["maxPriorityFeePerGas"],
            maxFeePerGas=tx["maxFeePerGas"],
            from_=tx["from"],
            gas_per_pub_data=meta["gasPerPubdata"],
            paymaster_params=meta.get("paymasterParams"),
        )
        signed_message = account.sign_message(tx_712.signable_message())
        raw_transaction = tx_712.encode(signed_message)
        tx_hash = await self.web3.eth.send_raw_transaction(raw_transaction)
        self.logger.info(
            "%s EIP-712 transaction %s sent to %s",
            self.name,
            to_hex_str(tx_hash),
            tx["to"],
        )
        return tx_hash

    async def estimate_gas_l1_to_l2(self, tx: dict) -> int:
        return await self.zksync.zks_estimate_gas_l1_to_l2(tx)

    async def get_transaction_receipt(
        self, tx_hash: TransactionHash
    ) -> TransactionReceipt:
        return await self.zksync.eth_get_transaction_receipt(tx_hash)

    async def get_transaction(self, tx_hash: TransactionHash) -> dict:
        return await self.zksync.eth_get_transaction_by_hash(tx_hash)
