from typing import Callable, Tuple

from eth_typing import HexStr
from eth_utils import to_checksum_address, to_hex

from zkbridge.core.errors import (
    BridgeError,
    MessageLogNotFoundError,
    WithdrawalLogNotFoundError,
)
from zkbridge.core.types import (
    L2ToL1Log,
    Log,
    TransactionHash,
    TransactionReceipt,
    WithdrawalMessage,
)
from zkbridge.core.utils import (
    BOOTLOADER_FORMAL_ADDRESS,
    ETH_ADDRESS_IN_CONTRACTS,
    L1_MESSENGER_ADDRESS,
    is_address_eq,
    to_bytes,
    to_hex_str,
)
from zkbridge.manage_contracts.contract_encoder_base import topic_to_address
from zkbridge.manage_contracts.utils import L1MessengerEncoder

l1_messenger_encoder = L1MessengerEncoder()
L1_MESSAGE_SENT_TOPIC = l1_messenger_encoder.event_topic("L1MessageSent")

LogPredicate = Callable[[L2ToL1Log], bool]


def is_failure_notification(tx_hash: TransactionHash) -> LogPredicate:
    """Matches the bootloader log reporting the execution status of ``tx_hash``."""
    key = to_hex_str(tx_hash)

    def predicate(log: L2ToL1Log) -> bool:
        return (
            is_address_eq(log.sender, BOOTLOADER_FORMAL_ADDRESS)
            and log.key.lower() == key
        )

    return predicate


def is_bootloader_message(log: L2ToL1Log) -> bool:
    return is_address_eq(log.sender, BOOTLOADER_FORMAL_ADDRESS)


def is_l1_messenger_message(sender: HexStr = None) -> LogPredicate:
    """Matches logs of the L1 messenger, optionally only those sent by ``sender``."""

    def predicate(log: L2ToL1Log) -> bool:
        if not is_address_eq(log.sender, L1_MESSENGER_ADDRESS):
            return False
        return sender is None or is_address_eq(topic_to_address(log.key), sender)

    return predicate


def locate_message(
    receipt: TransactionReceipt, predicate: LogPredicate, index: int = 0
) -> Tuple[int, L2ToL1Log]:
    """
    Returns the ``index``-th L2->L1 log of the receipt matching ``predicate``,
    together with its position among all L2->L1 logs of the transaction.
    That position is what the log proof endpoint expects.

    :raises MessageLogNotFoundError: when fewer than ``index + 1`` logs match.
    """
    matches = [
        (i, log) for i, log in enumerate(receipt.l2_to_l1_logs) if predicate(log)
    ]
    if index < 0 or index >= len(matches):
        raise MessageLogNotFoundError(receipt.transaction_hash, index)
    return matches[index]


def get_withdrawal_l2_to_l1_log(
    receipt: TransactionReceipt, index: int = 0
) -> Tuple[int, L2ToL1Log]:
    try:
        return locate_message(receipt, is_l1_messenger_message(), index)
    except MessageLogNotFoundError:
        raise WithdrawalLogNotFoundError(receipt.transaction_hash, index) from None


def get_withdrawal_log(receipt: TransactionReceipt, index: int = 0) -> Tuple[Log, int]:
    """
    Returns the ``index``-th L1MessageSent event of the receipt and the
    transaction's position in its L1 batch.

    :raises WithdrawalLogNotFoundError: when the receipt carries no such event.
    """
    logs = [
        log
        for log in receipt.logs
        if is_address_eq(log.address, L1_MESSENGER_ADDRESS)
        and log.topics
        and log.topics[0] == L1_MESSAGE_SENT_TOPIC
    ]
    if index < 0 or index >= len(logs):
        raise WithdrawalLogNotFoundError(receipt.transaction_hash, index)
    return logs[index], receipt.l1_batch_tx_index


def get_message_sender(log: Log) -> HexStr:
    """The L2 contract that sent an L1MessageSent event."""
    return topic_to_address(log.topics[1])


def get_message_body(log: Log) -> bytes:
    return l1_messenger_encoder.decode_event_data("L1MessageSent", log.data)["_message"]


def decode_withdrawal_message(
    message: bytes, base_token: HexStr = ETH_ADDRESS_IN_CONTRACTS
) -> WithdrawalMessage:
    """
    Decodes a withdrawal message body. Base token withdrawals carry
    selector(4) + receiver(20) + amount(32), bridged tokens additionally carry
    the L1 token address between receiver and amount.
    """
    message = to_bytes(message)
    if len(message) == 56:
        return WithdrawalMessage(
            l1_receiver=to_checksum_address(message[4:24]),
            l1_token=base_token,
            amount=int.from_bytes(message[24:56], "big"),
        )
    if len(message) >= 76:
        return WithdrawalMessage(
            l1_receiver=to_checksum_address(message[4:24]),
            l1_token=to_checksum_address(message[24:44]),
            amount=int.from_bytes(message[44:76], "big"),
        )
    raise BridgeError(f"Unsupported withdrawal message: {to_hex(message)}")
