from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from eth_abi import encode
from eth_account import Account
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import Web3

from zkbridge.core.types import (
    BridgeAddresses,
    L2ToL1Log,
    Log,
    TransactionReceipt,
    ZksMessageProof,
)
from zkbridge.core.utils import (
    BOOTLOADER_FORMAL_ADDRESS,
    ETH_ADDRESS_IN_CONTRACTS,
    L1_MESSENGER_ADDRESS,
    L2_BASE_TOKEN_ADDRESS,
    ZERO_HASH,
)
from zkbridge.manage_contracts.utils import L1MessengerEncoder
from zkbridge.provider.clients import L1Client, L2Client

private_key_1 = "0x7726827caac94a7f9e1b160f7ea819f172f7b6f9d2a97f992c38edeab82d4110"
ACCOUNT = Account.from_key(private_key_1)
address_1 = Web3.to_checksum_address("0x36615Cf349d7F6344891B1e7CA7C72883F5dc049")

DAI_L1 = Web3.to_checksum_address("0x70a0F165d6f8054d0d0CF8dFd4DD2005f0AF6B55")
DAI_L2 = Web3.to_checksum_address("0x82BCB1BF7FC4Eaf2De1bD4Ad2bd5E7CaE3E1Ab48")
BASE_TOKEN_L1 = Web3.to_checksum_address("0x0183Fe07a98bc036d6eb23C3943d823bcD66a90F")

BRIDGEHUB = Web3.to_checksum_address("0x35A54c8C757806eB6820629bc82d90E056394C92")
MAIN_CONTRACT = Web3.to_checksum_address("0x9A6DE0f62Aa270A8bCB1e2610078650D539B1Ef9")
SHARED_L1 = Web3.to_checksum_address("0x6F03861D12E6401623854E494beACd66BC46e6F0")
SHARED_L2 = Web3.to_checksum_address("0x681A1AFdC2e06776816386500D2D461a6C96cB45")
LEGACY_L1 = Web3.to_checksum_address("0x9a3Ec6b8F6f9e5CfA5a97bD5A8b1b8a1b4a06E5f")
LEGACY_L2 = Web3.to_checksum_address("0xC5cb4B4Ab0a5a0Ae4c3d0c1c7a5F86fAd2A31e47")
CUSTOM_L1_BRIDGE = Web3.to_checksum_address(
    "0x1234567890123456789012345678901234567890"
)
CUSTOM_L2_BRIDGE = Web3.to_checksum_address(
    "0x0987654321098765432109876543210987654321"
)
PAYMASTER = Web3.to_checksum_address("0x13D0D8550769f59aa241a41897D4859c87f7Dd46")
APPROVAL_TOKEN = Web3.to_checksum_address("0x927488F48ffbc32112F1fF721759649A89721F8F")

L1_CHAIN_ID = 9
L2_CHAIN_ID = 270
BASE_FEE = 1_000_000_000
PRIORITY_FEE = 1_000_000
GAS_PRICE = 2_000_000_000
BASE_COST = 3_000_000_000_000
L2_GAS_LIMIT = 400_000
L1_GAS_ESTIMATE = 100_000
PROOF_ID = 112
BATCH_NUMBER = 7
BATCH_TX_INDEX = 3

L1_TX_HASH = HexStr("0x" + "aa" * 32)
L2_TX_HASH = HexStr("0x" + "bb" * 32)
L2_SENT_HASH = HexStr("0x" + "cc" * 32)
PROOF = ZksMessageProof(
    id=PROOF_ID,
    proof=[HexStr("0x" + "11" * 32), HexStr("0x" + "22" * 32)],
    root=HexStr("0x" + "33" * 32),
)

BRIDGES = BridgeAddresses(
    shared_l1_default_bridge=SHARED_L1,
    shared_l2_default_bridge=SHARED_L2,
    erc20_l1_default_bridge=LEGACY_L1,
    erc20_l2_default_bridge=LEGACY_L2,
)

l1_messenger_encoder = L1MessengerEncoder()


def reader(responses: Dict[str, Any]) -> Callable:
    """Fake contract reads keyed by function name, callables get the address and args."""

    def read(encoder, address, fn_name, *args):
        value = responses[fn_name]
        if callable(value):
            return value(address, *args)
        return value

    return read


def make_l1(
    reads: Optional[Dict[str, Any]] = None,
    account=ACCOUNT,
    allowance: int = 0,
    head: Optional[dict] = None,
) -> L1Client:
    responses = {
        "baseToken": ETH_ADDRESS_IN_CONTRACTS,
        "l2TransactionBaseCost": BASE_COST,
        "name": "DAI",
        "symbol": "DAI",
        "decimals": 18,
        "l2BridgeAddress": CUSTOM_L2_BRIDGE,
        "isWithdrawalFinalized": False,
    }
    responses.update(reads or {})

    l1 = L1Client(MagicMock(), account, chain_id=L1_CHAIN_ID)
    l1.read = AsyncMock(side_effect=reader(responses))
    l1.get_block = AsyncMock(
        return_value=head if head is not None else {"baseFeePerGas": BASE_FEE}
    )
    l1.get_max_priority_fee = AsyncMock(return_value=PRIORITY_FEE)
    l1.get_gas_price = AsyncMock(return_value=GAS_PRICE)
    l1.get_allowance = AsyncMock(return_value=allowance)
    l1.estimate_gas = AsyncMock(return_value=L1_GAS_ESTIMATE)
    l1.send_transaction = AsyncMock(return_value=HexBytes(L1_TX_HASH))
    l1.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
    return l1


def make_l2(
    reads: Optional[Dict[str, Any]] = None,
    account=ACCOUNT,
    base_token: HexStr = ETH_ADDRESS_IN_CONTRACTS,
    bridges: BridgeAddresses = BRIDGES,
    receipt: Optional[TransactionReceipt] = None,
    transaction: Optional[dict] = None,
    proof: Optional[ZksMessageProof] = PROOF,
) -> L2Client:
    responses = {
        "l1SharedBridge": SHARED_L1,
        "l2TokenAddress": DAI_L2,
        "l1TokenAddress": DAI_L1,
    }
    responses.update(reads or {})

    l2 = L2Client(MagicMock(), account, chain_id=L2_CHAIN_ID)
    l2.read = AsyncMock(side_effect=reader(responses))
    l2.get_bridgehub_address = AsyncMock(return_value=BRIDGEHUB)
    l2.get_main_contract = AsyncMock(return_value=MAIN_CONTRACT)
    l2.get_bridge_contracts = AsyncMock(return_value=bridges)
    l2.get_base_token_l1_address = AsyncMock(return_value=base_token)
    l2.estimate_gas_l1_to_l2 = AsyncMock(return_value=L2_GAS_LIMIT)
    l2.get_transaction_receipt = AsyncMock(return_value=receipt)
    l2.get_transaction = AsyncMock(return_value=transaction)
    l2.get_log_proof = AsyncMock(return_value=proof)
    l2.send_transaction = AsyncMock(return_value=HexBytes(L2_TX_HASH))
    l2.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
    return l2


def address_topic(address: HexStr) -> HexStr:
    return HexStr("0x" + "00" * 12 + address[2:].lower())


def base_token_withdrawal_message(receiver: HexStr, amount: int) -> bytes:
    return (
        bytes.fromhex("6c0960f9")
        + bytes.fromhex(receiver[2:])
        + amount.to_bytes(32, "big")
    )


def token_withdrawal_message(receiver: HexStr, token: HexStr, amount: int) -> bytes:
    return (
        bytes.fromhex("11a2ccc1")
        + bytes.fromhex(receiver[2:])
        + bytes.fromhex(token[2:])
        + amount.to_bytes(32, "big")
    )


def withdrawal_receipt(
    sender: HexStr = L2_BASE_TOKEN_ADDRESS,
    message: Optional[bytes] = None,
    with_message: bool = True,
) -> TransactionReceipt:
    """
    Receipt of an L2 withdrawal. A bootloader log precedes the messenger log
    so the messenger log sits at position 1 of the L2->L1 logs.
    """
    if message is None:
        message = base_token_withdrawal_message(address_1, 5)

    l2_to_l1_logs: List[L2ToL1Log] = [
        L2ToL1Log(
            sender=BOOTLOADER_FORMAL_ADDRESS,
            key=L2_TX_HASH,
            value=HexStr("0x" + "00" * 31 + "01"),
            l1_batch_number=BATCH_NUMBER,
        )
    ]
    logs: List[Log] = []
    if with_message:
        l2_to_l1_logs.append(
            L2ToL1Log(
                sender=L1_MESSENGER_ADDRESS,
                key=address_topic(sender),
                value=L2_SENT_HASH,
                l1_batch_number=BATCH_NUMBER,
            )
        )
        logs.append(
            Log(
                address=L1_MESSENGER_ADDRESS,
                topics=[
                    l1_messenger_encoder.event_topic("L1MessageSent"),
                    address_topic(sender),
                    L2_SENT_HASH,
                ],
                data=HexStr("0x" + encode(["bytes"], [message]).hex()),
                l1_batch_number=BATCH_NUMBER,
            )
        )

    return TransactionReceipt(
        transaction_hash=L2_TX_HASH,
        from_=address_1.lower(),
        to=sender,
        status=1,
        block_number=100,
        l1_batch_number=BATCH_NUMBER,
        l1_batch_tx_index=BATCH_TX_INDEX,
        logs=logs,
        l2_to_l1_logs=l2_to_l1_logs,
    )


def deposit_receipt(from_: HexStr, succeeded: bool) -> TransactionReceipt:
    """Receipt of the L2 side of a deposit, with the bootloader status log."""
    return TransactionReceipt(
        transaction_hash=L2_TX_HASH,
        from_=from_,
        to=SHARED_L2,
        status=1 if succeeded else 0,
        block_number=100,
        l1_batch_number=BATCH_NUMBER,
        l1_batch_tx_index=BATCH_TX_INDEX,
        logs=[],
        l2_to_l1_logs=[
            L2ToL1Log(
                sender=BOOTLOADER_FORMAL_ADDRESS,
                key=L2_TX_HASH,
                value=HexStr("0x" + "00" * 31 + "01") if succeeded else ZERO_HASH,
                l1_batch_number=BATCH_NUMBER,
            )
        ],
    )
