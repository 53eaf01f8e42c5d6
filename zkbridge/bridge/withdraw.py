import logging
from dataclasses import replace

from hexbytes import HexBytes

from zkbridge.account.utils import prepare_transaction_options
from zkbridge.bridge.topology import l2_token_address
from zkbridge.core.errors import InvalidRequestError
from zkbridge.core.types import TransactionOptions, WithdrawTransaction
from zkbridge.core.utils import (
    DEFAULT_GAS_PER_PUBDATA_LIMIT,
    ETH_ADDRESS_IN_CONTRACTS,
    L2_BASE_TOKEN_ADDRESS,
    is_address_eq,
    is_eth,
    is_valid_address,
    to_hex_str,
)
from zkbridge.manage_contracts.utils import EthTokenEncoder, L2SharedBridgeEncoder
from zkbridge.provider.clients import L2Client

logger = logging.getLogger(__name__)

eth_token_encoder = EthTokenEncoder()
l2_shared_bridge_encoder = L2SharedBridgeEncoder()


def validate_withdrawal(transaction: WithdrawTransaction):
    if transaction.token is not None and not is_valid_address(transaction.token):
        raise InvalidRequestError(f"Invalid token address: {transaction.token}")
    if (
        not isinstance(transaction.amount, int)
        or isinstance(transaction.amount, bool)
        or transaction.amount < 0
    ):
        raise InvalidRequestError(f"Invalid withdrawal amount: {transaction.amount}")
    for name in ("to", "bridge_address"):
        value = getattr(transaction, name)
        if value is not None and not is_valid_address(value):
            raise InvalidRequestError(f"Invalid {name} address: {value}")
    paymaster_params = transaction.paymaster_params
    if paymaster_params is not None and not is_valid_address(
        paymaster_params.paymaster
    ):
        raise InvalidRequestError(
            f"Invalid paymaster address: {paymaster_params.paymaster}"
        )


async def get_withdraw_transaction(
    l2: L2Client, transaction: WithdrawTransaction
) -> dict:
    """
    Returns the populated L2 transaction that initiates a withdrawal.

    :param transaction: WithdrawTransaction class. Required parameters are token(L2 token address) and amount.
        With paymaster_params set the transaction carries eip712Meta and is sent as an EIP-712 transaction.
    """
    validate_withdrawal(transaction)
    to = transaction.to if transaction.to is not None else l2.address
    options = (
        replace(transaction.options)
        if transaction.options is not None
        else TransactionOptions()
    )

    token = transaction.token
    if token is None:
        token = L2_BASE_TOKEN_ADDRESS
    elif is_eth(token):
        token = await l2_token_address(l2, ETH_ADDRESS_IN_CONTRACTS)

    if is_address_eq(token, L2_BASE_TOKEN_ADDRESS):
        options.value = transaction.amount
        tx = {
            "to": L2_BASE_TOKEN_ADDRESS,
            "data": eth_token_encoder.encode_method("withdraw", (to,)),
            **prepare_transaction_options(options),
        }
    else:
        bridge_address = transaction.bridge_address
        if bridge_address is None:
            bridge_address = (await l2.get_bridge_contracts()).shared_l2_default_bridge
        tx = {
            "to": bridge_address,
            "data": l2_shared_bridge_encoder.encode_method(
                "withdraw", (to, token, transaction.amount)
            ),
            **prepare_transaction_options(options),
        }

    if transaction.paymaster_params is not None:
        tx["eip712Meta"] = {
            "gasPerPubdata": DEFAULT_GAS_PER_PUBDATA_LIMIT,
            "paymasterParams": transaction.paymaster_params,
        }
    return tx


async def withdraw(l2: L2Client, transaction: WithdrawTransaction) -> HexBytes:
    """
    Initiates the withdrawal process which withdraws the base token or any bridged token
    from the associated account on L2 network to the target account on L1 network.

    :param transaction: WithdrawTransaction class. Required parameters are token(L2 token address) and amount.
    :returns: Withdrawal hash.
    """
    l2.require_account()
    tx = await get_withdraw_transaction(l2, transaction)
    tx_hash = await l2.send_transaction(tx)
    logger.info(
        "Withdrawal of %s %s sent: %s",
        transaction.amount,
        transaction.token or L2_BASE_TOKEN_ADDRESS,
        to_hex_str(tx_hash),
    )
    return tx_hash
