import logging
from typing import Mapping

from eth_typing import HexStr
from web3.exceptions import MismatchedABI

from zkbridge.core.errors import TxHashNotFoundInLogsError
from zkbridge.core.types import TransactionReceipt
from zkbridge.core.utils import is_address_eq, to_hex_str
from zkbridge.manage_contracts.utils import HyperchainEncoder
from zkbridge.provider.clients import L2Client

logger = logging.getLogger(__name__)

hyperchain_encoder = HyperchainEncoder()
NEW_PRIORITY_REQUEST_TOPIC = hyperchain_encoder.event_topic("NewPriorityRequest")


def get_l2_hash_from_priority_op(
    tx_receipt: Mapping, main_contract_address: HexStr
) -> HexStr:
    """
    Returns the L2 transaction hash carried by the NewPriorityRequest event that
    ``main_contract_address`` emitted in the L1 receipt.

    :param tx_receipt: Receipt of the L1 transaction that submitted the priority operation.
    :param main_contract_address: Address of the chain's diamond proxy on L1.
    :raises TxHashNotFoundInLogsError: when no such event was emitted by that contract.
    """
    event = hyperchain_encoder.event("NewPriorityRequest")
    for log in tx_receipt["logs"]:
        if not is_address_eq(log["address"], main_contract_address):
            continue
        try:
            return to_hex_str(event.process_log(log).args.txHash)
        except MismatchedABI:
            continue

    raise TxHashNotFoundInLogsError(main_contract_address)


async def get_l2_transaction_from_priority_op(
    tx_receipt: Mapping, l2: L2Client
) -> TransactionReceipt:
    """Waits for the L2 transaction of a priority operation and returns its receipt."""
    main_contract = await l2.get_main_contract()
    l2_hash = get_l2_hash_from_priority_op(tx_receipt, main_contract)
    logger.debug("Priority operation maps to L2 transaction %s", l2_hash)
    await l2.wait_for_transaction_receipt(l2_hash)
    return await l2.get_transaction_receipt(l2_hash)
