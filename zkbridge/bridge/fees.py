import logging
from typing import Tuple

from eth_typing import HexStr

from zkbridge.core.errors import BaseCostExceedsValueError
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import FeeParams, TransactionOptions
from zkbridge.core.utils import DEPOSIT_GAS_PER_PUBDATA_LIMIT
from zkbridge.manage_contracts.utils import BridgehubEncoder
from zkbridge.provider.clients import L1Client

logger = logging.getLogger(__name__)

bridgehub_encoder = BridgehubEncoder()


def check_base_cost(base_cost: int, value: int):
    if base_cost > value:
        raise BaseCostExceedsValueError(base_cost, value)


async def get_base_cost(
    l1: L1Client,
    bridgehub: HexStr,
    chain_id: int,
    gas_price: int,
    l2_gas_limit: int,
    gas_per_pubdata_byte: int = DEPOSIT_GAS_PER_PUBDATA_LIMIT,
) -> int:
    """
    Returns base cost for L2 transaction.

    :param bridgehub: The bridgehub contract address on L1.
    :param chain_id: The L2 chain id.
    :param gas_price: The L1 gas price of the L1 transaction that will send the request.
    :param l2_gas_limit: The gasLimit for the L2 contract call.
    :param gas_per_pubdata_byte: The L2 gas price for each published L1 calldata byte.
    """
    base_cost = await l1.read(
        bridgehub_encoder,
        bridgehub,
        "l2TransactionBaseCost",
        chain_id,
        gas_price,
        l2_gas_limit,
        gas_per_pubdata_byte,
    )
    logger.debug(
        "Base cost %s for l2 gas limit %s at gas price %s",
        base_cost,
        l2_gas_limit,
        gas_price,
    )
    return base_cost


async def check_if_l1_chain_is_london_ready(l1: L1Client) -> Tuple[bool, dict]:
    head = await l1.get_block("latest")
    if head.get("baseFeePerGas") is not None:
        return True, head
    return False, head


async def estimate_fee_params(
    l1: L1Client, settings: BridgeSettings = DEFAULT_SETTINGS
) -> FeeParams:
    """
    Returns EIP-1559 fee params with max_fee_per_gas = base_fee * multiplier + priority_fee,
    or a legacy gas price for chains without a base fee.
    """
    is_ready, head = await check_if_l1_chain_is_london_ready(l1)
    if not is_ready:
        return FeeParams(gas_price=await l1.get_gas_price())

    max_priority_fee_per_gas = await l1.get_max_priority_fee()
    max_fee_per_gas = (
        int(head["baseFeePerGas"] * settings.base_fee_multiplier)
        + max_priority_fee_per_gas
    )
    return FeeParams(
        max_fee_per_gas=max_fee_per_gas,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
    )


async def insert_gas_price_in_transaction_options(
    l1: L1Client,
    options: TransactionOptions,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> TransactionOptions:
    if options.gas_price is not None or options.max_fee_per_gas is not None:
        return options

    is_ready, head = await check_if_l1_chain_is_london_ready(l1)
    if is_ready:
        if options.max_priority_fee_per_gas is None:
            options.max_priority_fee_per_gas = await l1.get_max_priority_fee()
        options.max_fee_per_gas = (
            int(head["baseFeePerGas"] * settings.base_fee_multiplier)
            + options.max_priority_fee_per_gas
        )
    else:
        options.gas_price = await l1.get_gas_price()

    return options


def gas_price_for_estimation(options: TransactionOptions) -> int:
    if options.max_fee_per_gas is not None:
        return options.max_fee_per_gas
    return options.gas_price
