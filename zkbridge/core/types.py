from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from eth_typing import Hash32, HexStr
from hexbytes import HexBytes

from zkbridge.core.utils import (
    DEPOSIT_GAS_PER_PUBDATA_LIMIT,
    ETH_ADDRESS_IN_CONTRACTS,
    is_address_eq,
)

TransactionHash = Union[Hash32, HexBytes, HexStr]


@dataclass(frozen=True)
class ChainContext:
    chain_id: int
    base_token: HexStr

    @property
    def is_eth_based_chain(self) -> bool:
        return is_address_eq(self.base_token, ETH_ADDRESS_IN_CONTRACTS)


@dataclass
class BridgeAddresses:
    shared_l1_default_bridge: HexStr
    shared_l2_default_bridge: HexStr
    erc20_l1_default_bridge: Optional[HexStr] = None
    erc20_l2_default_bridge: Optional[HexStr] = None


@dataclass
class ZksMessageProof:
    id: int
    proof: List[HexStr]
    root: HexStr


@dataclass
class TransactionOptions:
    chain_id: int = None
    nonce: int = None
    value: int = None
    gas_price: int = None
    max_fee_per_gas: int = None
    max_priority_fee_per_gas: int = None
    gas_limit: int = None


@dataclass
class FeeParams:
    max_fee_per_gas: int = None
    max_priority_fee_per_gas: int = None
    gas_price: int = None


@dataclass
class DepositTransaction:
    token: HexStr
    amount: int = None
    to: HexStr = None
    operator_tip: int = 0
    bridge_address: HexStr = None
    approve_erc20: bool = False
    approve_base_erc20: bool = False
    l2_gas_limit: int = None
    gas_per_pubdata_byte: int = DEPOSIT_GAS_PER_PUBDATA_LIMIT
    custom_bridge_data: bytes = None
    refund_recipient: HexStr = None
    mint_value: int = None
    options: TransactionOptions = None
    approve_options: TransactionOptions = None
    approve_base_options: TransactionOptions = None


@dataclass
class PaymasterParams:
    paymaster: HexStr
    paymaster_input: bytes


@dataclass
class WithdrawTransaction:
    token: HexStr
    amount: int
    to: HexStr = None
    bridge_address: HexStr = None
    options: TransactionOptions = None
    paymaster_params: PaymasterParams = None


@dataclass
class RequestExecuteCallMsg:
    contract_address: HexStr
    call_data: Union[bytes, HexStr] = b""
    from_: HexStr = None
    l2_gas_limit: int = 0
    mint_value: int = 0
    l2_value: int = 0
    factory_deps: List[bytes] = None
    operator_tip: int = 0
    gas_per_pubdata_byte: int = DEPOSIT_GAS_PER_PUBDATA_LIMIT
    refund_recipient: HexStr = None
    options: TransactionOptions = None


@dataclass
class AllowanceParams:
    token: HexStr
    allowance: int


@dataclass
class L2ToL1Log:
    sender: HexStr
    key: HexStr
    value: HexStr
    l1_batch_number: Optional[int] = None
    tx_index_in_l1_batch: Optional[int] = None
    log_index: Optional[int] = None
    transaction_hash: Optional[HexStr] = None
    is_service: bool = False
    shard_id: int = 0


@dataclass
class Log:
    address: HexStr
    topics: List[HexStr]
    data: HexStr
    l1_batch_number: Optional[int] = None
    log_index: Optional[int] = None


@dataclass
class TransactionReceipt:
    transaction_hash: HexStr
    from_: HexStr
    to: Optional[HexStr]
    status: int
    block_number: int
    l1_batch_number: Optional[int] = None
    l1_batch_tx_index: Optional[int] = None
    logs: List[Log] = field(default_factory=list)
    l2_to_l1_logs: List[L2ToL1Log] = field(default_factory=list)


class ProofStatus(Enum):
    MESSAGE_NOT_FOUND = "message_not_found"
    PROOF_PENDING = "proof_pending"
    PROOF_AVAILABLE = "proof_available"


@dataclass
class ProofLookup:
    status: ProofStatus
    log_index: Optional[int] = None
    log: Optional[L2ToL1Log] = None
    proof: Optional[ZksMessageProof] = None


class WithdrawalState(Enum):
    NOT_YET_PROCESSABLE = "not_yet_processable"
    PROCESSABLE = "processable"
    FINALIZED = "finalized"


@dataclass
class WithdrawalMessage:
    l1_receiver: HexStr
    l1_token: HexStr
    amount: int


@dataclass
class FinalizeWithdrawalParams:
    l1_batch_number: int
    l2_message_index: int
    l2_tx_number_in_block: int
    message: bytes
    sender: HexStr
    proof: List[HexStr]


@dataclass
class PriorityOpConfirmation:
    l1_batch_number: int
    l2_message_index: int
    l2_tx_number_in_block: int
    proof: List[HexStr]
