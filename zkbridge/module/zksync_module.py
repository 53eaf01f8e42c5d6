import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from eth_typing import HexStr
from eth_utils import is_address, is_bytes, is_integer, to_checksum_address, to_hex
from eth_utils.curried import (
    apply_formatter_at_index,
    apply_formatter_if,
    apply_formatters_to_dict,
)
from eth_utils.toolz import identity
from web3.method import Method, default_root_munger
from web3.module import Module
from web3.types import RPCEndpoint

from zkbridge.core.types import (
    BridgeAddresses,
    L2ToL1Log,
    Log,
    PaymasterParams,
    TransactionHash,
    TransactionReceipt,
    ZksMessageProof,
)
from zkbridge.core.utils import to_bytes, to_hex_str, to_int

zks_main_contract_rpc = RPCEndpoint("zks_getMainContract")
zks_get_bridge_contracts_rpc = RPCEndpoint("zks_getBridgeContracts")
zks_get_bridgehub_contract_rpc = RPCEndpoint("zks_getBridgehubContract")
zks_get_base_token_l1_address_rpc = RPCEndpoint("zks_getBaseTokenL1Address")
zks_get_l2_to_l1_log_proof_rpc = RPCEndpoint("zks_getL2ToL1LogProof")
zks_estimate_gas_l1_to_l2_rpc = RPCEndpoint("zks_estimateGasL1ToL2")
eth_get_transaction_receipt_rpc = RPCEndpoint("eth_getTransactionReceipt")
eth_get_transaction_by_hash_rpc = RPCEndpoint("eth_getTransactionByHash")
eth_estimate_gas_rpc = RPCEndpoint("eth_estimateGas")

to_hex_if_integer = apply_formatter_if(is_integer, to_hex)


def bytes_to_list(v: bytes) -> List[int]:
    return [int(e) for e in v]


def paymaster_params_formatter(params: PaymasterParams) -> dict:
    return {
        "paymaster": to_checksum_address(params.paymaster),
        "paymasterInput": bytes_to_list(to_bytes(params.paymaster_input)),
    }


def meta_formatter(meta: dict) -> dict:
    return apply_formatters_to_dict(
        {
            "gasPerPubdata": to_hex_if_integer,
            "paymasterParams": paymaster_params_formatter,
        },
        meta,
    )


ZKS_TRANSACTION_PARAMS_FORMATTERS = {
    "data": apply_formatter_if(is_bytes, to_hex),
    "from": apply_formatter_if(is_address, to_checksum_address),
    "to": apply_formatter_if(is_address, to_checksum_address),
    "gas": to_hex_if_integer,
    "gasPrice": to_hex_if_integer,
    "maxFeePerGas": to_hex_if_integer,
    "maxPriorityFeePerGas": to_hex_if_integer,
    "nonce": to_hex_if_integer,
    "value": to_hex_if_integer,
    "chainId": to_hex_if_integer,
    "type": to_hex_if_integer,
    "eip712Meta": meta_formatter,
}

zks_transaction_request_formatter = apply_formatters_to_dict(
    ZKS_TRANSACTION_PARAMS_FORMATTERS
)

ZKSYNC_REQUEST_FORMATTERS: Dict[RPCEndpoint, Callable[..., Any]] = {
    eth_estimate_gas_rpc: apply_formatter_at_index(
        zks_transaction_request_formatter, 0
    ),
    zks_estimate_gas_l1_to_l2_rpc: apply_formatter_at_index(
        zks_transaction_request_formatter, 0
    ),
}


def to_bridge_address(t: dict) -> BridgeAddresses:
    def optional(key):
        value = t.get(key)
        return HexStr(to_checksum_address(value)) if value else None

    return BridgeAddresses(
        shared_l1_default_bridge=HexStr(to_checksum_address(t["l1SharedDefaultBridge"])),
        shared_l2_default_bridge=HexStr(to_checksum_address(t["l2SharedDefaultBridge"])),
        erc20_l1_default_bridge=optional("l1Erc20DefaultBridge"),
        erc20_l2_default_bridge=optional("l2Erc20DefaultBridge"),
    )


def to_msg_proof(v: Optional[dict]) -> Optional[ZksMessageProof]:
    if v is None:
        return None
    return ZksMessageProof(
        id=to_int(v["id"]),
        proof=[to_hex_str(p) for p in v["proof"]],
        root=to_hex_str(v["root"]),
    )


def to_l2_to_l1_log(t: dict) -> L2ToL1Log:
    return L2ToL1Log(
        sender=to_hex_str(t["sender"]),
        key=to_hex_str(t["key"]),
        value=to_hex_str(t["value"]),
        l1_batch_number=to_int(t.get("l1BatchNumber")),
        tx_index_in_l1_batch=to_int(t.get("txIndexInL1Batch")),
        log_index=to_int(t.get("logIndex")),
        transaction_hash=(
            to_hex_str(t["transactionHash"]) if t.get("transactionHash") else None
        ),
        is_service=bool(t.get("isService", False)),
        shard_id=to_int(t.get("shardId", 0)),
    )


def to_log(t: dict) -> Log:
    return Log(
        address=to_hex_str(t["address"]),
        topics=[to_hex_str(topic) for topic in t["topics"]],
        data=to_hex_str(t["data"]),
        l1_batch_number=to_int(t.get("l1BatchNumber")),
        log_index=to_int(t.get("logIndex")),
    )


def to_transaction_receipt(t: Optional[dict]) -> Optional[TransactionReceipt]:
    if t is None:
        return None
    return TransactionReceipt(
        transaction_hash=to_hex_str(t["transactionHash"]),
        from_=to_hex_str(t["from"]),
        to=to_hex_str(t["to"]) if t.get("to") else None,
        status=to_int(t["status"]),
        block_number=to_int(t["blockNumber"]),
        l1_batch_number=to_int(t.get("l1BatchNumber")),
        l1_batch_tx_index=to_int(t.get("l1BatchTxIndex")),
        logs=[to_log(log) for log in t.get("logs", [])],
        l2_to_l1_logs=[to_l2_to_l1_log(log) for log in t.get("l2ToL1Logs", [])],
    )


ZKSYNC_RESULT_FORMATTERS: Dict[RPCEndpoint, Callable[..., Any]] = {
    zks_main_contract_rpc: to_checksum_address,
    zks_get_bridgehub_contract_rpc: to_checksum_address,
    zks_get_base_token_l1_address_rpc: to_checksum_address,
    zks_get_bridge_contracts_rpc: to_bridge_address,
    zks_get_l2_to_l1_log_proof_rpc: to_msg_proof,
    zks_estimate_gas_l1_to_l2_rpc: to_int,
    eth_estimate_gas_rpc: to_int,
    eth_get_transaction_receipt_rpc: to_transaction_receipt,
}


def zksync_get_request_formatters(
    method_name: Union[RPCEndpoint, Callable[..., RPCEndpoint]]
) -> Callable[..., Any]:
    return ZKSYNC_REQUEST_FORMATTERS.get(method_name, identity)


def zksync_get_result_formatters(
    method_name: Union[RPCEndpoint, Callable[..., RPCEndpoint]],
    module: "Module",
) -> Callable[..., Any]:
    return ZKSYNC_RESULT_FORMATTERS.get(method_name, identity)


class ZkSync(Module):
    """zks_* JSON-RPC namespace, attached to an AsyncWeb3 instance as ``w3.zksync``."""

    is_async = True
    logger = logging.getLogger("ZkSync")

    _zks_main_contract: Method[Callable[[], Awaitable[HexStr]]] = Method(
        zks_main_contract_rpc,
        mungers=None,
        result_formatters=zksync_get_result_formatters,
    )
    _zks_get_bridge_contracts: Method[Callable[[], Awaitable[BridgeAddresses]]] = Method(
        zks_get_bridge_contracts_rpc,
        mungers=None,
        result_formatters=zksync_get_result_formatters,
    )
    _zks_get_bridgehub_contract_address: Method[Callable[[], Awaitable[HexStr]]] = (
        Method(
            zks_get_bridgehub_contract_rpc,
            mungers=None,
            result_formatters=zksync_get_result_formatters,
        )
    )
    _zks_get_base_token_contract_address: Method[Callable[[], Awaitable[HexStr]]] = (
        Method(
            zks_get_base_token_l1_address_rpc,
            mungers=None,
            result_formatters=zksync_get_result_formatters,
        )
    )
    _zks_get_l2_to_l1_log_proof: Method[
        Callable[[HexStr, Optional[int]], Awaitable[Optional[ZksMessageProof]]]
    ] = Method(
        zks_get_l2_to_l1_log_proof_rpc,
        mungers=[default_root_munger],
        result_formatters=zksync_get_result_formatters,
    )
    _zks_estimate_gas_l1_to_l2: Method[Callable[[dict], Awaitable[int]]] = Method(
        zks_estimate_gas_l1_to_l2_rpc,
        mungers=[default_root_munger],
        request_formatters=zksync_get_request_formatters,
        result_formatters=zksync_get_result_formatters,
    )
    _eth_estimate_gas: Method[Callable[[dict], Awaitable[int]]] = Method(
        eth_estimate_gas_rpc,
        mungers=[default_root_munger],
        request_formatters=zksync_get_request_formatters,
        result_formatters=zksync_get_result_formatters,
    )
    _eth_get_transaction_receipt: Method[
        Callable[[HexStr], Awaitable[TransactionReceipt]]
    ] = Method(
        eth_get_transaction_receipt_rpc,
        mungers=[default_root_munger],
        result_formatters=zksync_get_result_formatters,
    )
    _eth_get_transaction_by_hash: Method[Callable[[HexStr], Awaitable[dict]]] = Method(
        eth_get_transaction_by_hash_rpc,
        mungers=[default_root_munger],
        result_formatters=zksync_get_result_formatters,
    )

    def __init__(self, w3):
        super().__init__(w3)
        self.main_contract_address = None
        self.bridgehub_contract_address = None
        self.bridge_addresses = None
        self.base_token = None

    async def zks_main_contract(self) -> HexStr:
        if self.main_contract_address is None:
            self.main_contract_address = await self._zks_main_contract()
        return self.main_contract_address

    async def zks_get_bridgehub_contract_address(self) -> HexStr:
        if self.bridgehub_contract_address is None:
            self.bridgehub_contract_address = (
                await self._zks_get_bridgehub_contract_address()
            )
        return self.bridgehub_contract_address

    async def zks_get_bridge_contracts(self) -> BridgeAddresses:
        if self.bridge_addresses is None:
            self.bridge_addresses = await self._zks_get_bridge_contracts()
        return self.bridge_addresses

    async def zks_get_base_token_contract_address(self) -> HexStr:
        """Returns the L1 base token address."""
        if self.base_token is None:
            self.base_token = await self._zks_get_base_token_contract_address()
        return self.base_token

    async def zks_get_log_proof(
        self, tx_hash: TransactionHash, index: Optional[int] = None
    ) -> Optional[ZksMessageProof]:
        """
        Returns the inclusion proof of an L2->L1 log, or None while the batch
        holding the transaction is not yet committed to L1.

        :param tx_hash: Hash of the L2 transaction the log was produced in.
        :param index: Position of the log among all L2->L1 logs of the transaction.
        """
        self.logger.debug("zks_getL2ToL1LogProof %s index %s", tx_hash, index)
        return await self._zks_get_l2_to_l1_log_proof(to_hex_str(tx_hash), index)

    async def zks_estimate_gas_l1_to_l2(self, transaction: dict) -> int:
        return await self._zks_estimate_gas_l1_to_l2(transaction)

    async def eth_estimate_gas(self, transaction: dict) -> int:
        """Estimates L2 gas of a transaction that may carry eip712Meta."""
        return await self._eth_estimate_gas(transaction)

    async def eth_get_transaction_receipt(
        self, tx_hash: TransactionHash
    ) -> TransactionReceipt:
        return await self._eth_get_transaction_receipt(to_hex_str(tx_hash))

    async def eth_get_transaction_by_hash(self, tx_hash: TransactionHash) -> dict:
        return await self._eth_get_transaction_by_hash(to_hex_str(tx_hash))
