import logging
from typing import Tuple

from eth_typing import HexStr
from web3 import Web3

from zkbridge.core.types import BridgeAddresses, ChainContext
from zkbridge.core.utils import (
    L2_BASE_TOKEN_ADDRESS,
    LEGACY_ETH_ADDRESS,
    is_address_eq,
    normalize_token,
)
from zkbridge.manage_contracts.utils import BridgehubEncoder, L2SharedBridgeEncoder
from zkbridge.provider.clients import L1Client, L2Client

logger = logging.getLogger(__name__)

bridgehub_encoder = BridgehubEncoder()
l2_shared_bridge_encoder = L2SharedBridgeEncoder()


async def get_bridgehub_address(l2: L2Client) -> HexStr:
    return Web3.to_checksum_address(await l2.get_bridgehub_address())


async def get_base_token(l1: L1Client, l2: L2Client) -> HexStr:
    """Returns the L1 address of the L2 chain's base token, as registered in the bridgehub."""
    chain_id = await l2.get_chain_id()
    bridgehub = await get_bridgehub_address(l2)
    return await l1.read(bridgehub_encoder, bridgehub, "baseToken", chain_id)


async def get_chain_context(l1: L1Client, l2: L2Client) -> ChainContext:
    chain_id = await l2.get_chain_id()
    base_token = await get_base_token(l1, l2)
    return ChainContext(chain_id=chain_id, base_token=base_token)


async def is_eth_based_chain(l1: L1Client, l2: L2Client) -> bool:
    return (await get_chain_context(l1, l2)).is_eth_based_chain


async def resolve_topology(
    l1: L1Client, l2: L2Client
) -> Tuple[ChainContext, BridgeAddresses]:
    """
    Resolves the chain context and the bridge address set that every
    deposit, finalization and claim routes through.

    :raises ChainNotConfiguredError: when the L2 client has no chain id.
    """
    context = await get_chain_context(l1, l2)
    bridges = await l2.get_bridge_contracts()
    logger.debug(
        "Chain %s base token %s, shared bridges L1 %s L2 %s",
        context.chain_id,
        context.base_token,
        bridges.shared_l1_default_bridge,
        bridges.shared_l2_default_bridge,
    )
    return context, bridges


async def l2_token_address(
    l2: L2Client, token: HexStr, base_token: HexStr = None
) -> HexStr:
    """
    Returns the L2 address of an L1 token.

    :param token: The address of the token on L1.
    :param base_token: The L1 address of the chain's base token, fetched when not given.
    """
    token = normalize_token(token)
    if base_token is None:
        base_token = await l2.get_base_token_l1_address()
    if is_address_eq(token, base_token):
        return L2_BASE_TOKEN_ADDRESS

    bridges = await l2.get_bridge_contracts()
    return await l2.read(
        l2_shared_bridge_encoder,
        bridges.shared_l2_default_bridge,
        "l2TokenAddress",
        token,
    )


async def l1_token_address(l2: L2Client, token: HexStr) -> HexStr:
    """
    Returns the L1 address of an L2 token.

    :param token: The address of the token on L2.
    """
    if is_address_eq(token, LEGACY_ETH_ADDRESS):
        return LEGACY_ETH_ADDRESS
    if is_address_eq(token, L2_BASE_TOKEN_ADDRESS):
        return await l2.get_base_token_l1_address()

    bridges = await l2.get_bridge_contracts()
    return await l2.read(
        l2_shared_bridge_encoder,
        bridges.shared_l2_default_bridge,
        "l1TokenAddress",
        token,
    )
