import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from eth_abi import encode
from eth_typing import HexStr
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3.types import TxReceipt

from zkbridge.account.utils import (
    deposit_to_request_execute,
    prepare_transaction_options,
)
from zkbridge.bridge.fees import (
    check_base_cost,
    gas_price_for_estimation,
    get_base_cost,
    insert_gas_price_in_transaction_options,
)
from zkbridge.bridge.topology import (
    get_bridgehub_address,
    get_chain_context,
    resolve_topology,
)
from zkbridge.core.errors import InvalidRequestError, TransactionRevertedError
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import (
    AllowanceParams,
    BridgeAddresses,
    ChainContext,
    DepositTransaction,
    RequestExecuteCallMsg,
    TransactionOptions,
)
from zkbridge.core.utils import (
    ETH_ADDRESS_IN_CONTRACTS,
    apply_l1_to_l2_alias,
    encode_bridge_data,
    is_address_eq,
    is_eth,
    is_valid_address,
    normalize_token,
    scale_gas_limit,
    to_bytes,
    to_hex_str,
)
from zkbridge.manage_contracts.utils import (
    BridgehubEncoder,
    ERC20Encoder,
    L1SharedBridgeEncoder,
    L2SharedBridgeEncoder,
)
from zkbridge.provider.clients import L1Client, L2Client

logger = logging.getLogger(__name__)

bridgehub_encoder = BridgehubEncoder()
erc20_encoder = ERC20Encoder()
l1_shared_bridge_encoder = L1SharedBridgeEncoder()
l2_shared_bridge_encoder = L2SharedBridgeEncoder()


class DepositRoute(Enum):
    """The five call shapes a deposit can take, keyed by chain and token topology."""

    ETH_TO_ETH_BASED = "eth_to_eth_based"
    TOKEN_TO_ETH_BASED = "token_to_eth_based"
    ETH_TO_NON_ETH_BASED = "eth_to_non_eth_based"
    BASE_TOKEN_TO_NON_ETH_BASED = "base_token_to_non_eth_based"
    TOKEN_TO_NON_ETH_BASED = "token_to_non_eth_based"

    @classmethod
    def select(cls, context: ChainContext, token: HexStr) -> "DepositRoute":
        token_is_eth = is_address_eq(normalize_token(token), ETH_ADDRESS_IN_CONTRACTS)
        if context.is_eth_based_chain:
            return cls.ETH_TO_ETH_BASED if token_is_eth else cls.TOKEN_TO_ETH_BASED
        if token_is_eth:
            return cls.ETH_TO_NON_ETH_BASED
        if is_address_eq(token, context.base_token):
            return cls.BASE_TOKEN_TO_NON_ETH_BASED
        return cls.TOKEN_TO_NON_ETH_BASED


@dataclass
class ApprovalRequest:
    token: HexStr
    spender: HexStr
    amount: int
    options: Optional[TransactionOptions] = None


@dataclass
class DepositPlan:
    route: DepositRoute
    data: HexStr
    value: int
    mint_value: int
    base_cost: int = 0
    approvals: List[ApprovalRequest] = field(default_factory=list)
    tx: dict = field(default_factory=dict)


def validate_deposit(transaction: DepositTransaction):
    if not is_valid_address(transaction.token):
        raise InvalidRequestError(f"Invalid token address: {transaction.token}")
    if (
        not isinstance(transaction.amount, int)
        or isinstance(transaction.amount, bool)
        or transaction.amount < 0
    ):
        raise InvalidRequestError(f"Invalid deposit amount: {transaction.amount}")
    if transaction.operator_tip is None or transaction.operator_tip < 0:
        raise InvalidRequestError(f"Invalid operator tip: {transaction.operator_tip}")
    for name in ("to", "refund_recipient", "bridge_address"):
        value = getattr(transaction, name)
        if value is not None and not is_valid_address(value):
            raise InvalidRequestError(f"Invalid {name} address: {value}")


def _mint_value(transaction: DepositTransaction, computed: int) -> int:
    if transaction.mint_value is not None:
        return transaction.mint_value
    return computed


def _request_direct_data(chain_id: int, msg: RequestExecuteCallMsg) -> HexStr:
    return bridgehub_encoder.encode_method(
        "requestL2TransactionDirect",
        (
            {
                "chainId": chain_id,
                "mintValue": msg.mint_value,
                "l2Contract": msg.contract_address,
                "l2Value": msg.l2_value,
                "l2Calldata": to_bytes(msg.call_data),
                "l2GasLimit": msg.l2_gas_limit,
                "l2GasPerPubdataByteLimit": msg.gas_per_pubdata_byte,
                "factoryDeps": [to_bytes(d) for d in msg.factory_deps or []],
                "refundRecipient": msg.refund_recipient,
            },
        ),
    )


def _second_bridge_calldata(token: HexStr, amount: int, to: HexStr) -> bytes:
    return encode(
        ["address", "uint256", "address"],
        [to_checksum_address(token), amount, to_checksum_address(to)],
    )


def _request_two_bridges_data(
    chain_id: int,
    transaction: DepositTransaction,
    mint_value: int,
    second_bridge_address: HexStr,
    second_bridge_value: int,
    second_bridge_calldata: bytes,
) -> HexStr:
    return bridgehub_encoder.encode_method(
        "requestL2TransactionTwoBridges",
        (
            {
                "chainId": chain_id,
                "mintValue": mint_value,
                "l2Value": 0,
                "l2GasLimit": transaction.l2_gas_limit,
                "l2GasPerPubdataByteLimit": transaction.gas_per_pubdata_byte,
                "refundRecipient": transaction.refund_recipient,
                "secondBridgeAddress": second_bridge_address,
                "secondBridgeValue": second_bridge_value,
                "secondBridgeCalldata": second_bridge_calldata,
            },
        ),
    )


def _build_eth_to_eth_based(
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    base_cost: int,
) -> DepositPlan:
    mint_value = _mint_value(
        transaction, base_cost + transaction.operator_tip + transaction.amount
    )
    msg = deposit_to_request_execute(transaction, mint_value)
    return DepositPlan(
        route=DepositRoute.ETH_TO_ETH_BASED,
        data=_request_direct_data(context.chain_id, msg),
        value=mint_value,
        mint_value=mint_value,
    )


def _build_token_to_eth_based(
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    base_cost: int,
) -> DepositPlan:
    mint_value = _mint_value(transaction, base_cost + transaction.operator_tip)
    bridge_address = transaction.bridge_address or bridges.shared_l1_default_bridge

    approvals = []
    if transaction.approve_erc20:
        approvals.append(
            ApprovalRequest(
                transaction.token,
                bridge_address,
                transaction.amount,
                transaction.approve_options,
            )
        )

    calldata = _second_bridge_calldata(
        transaction.token, transaction.amount, transaction.to
    )
    return DepositPlan(
        route=DepositRoute.TOKEN_TO_ETH_BASED,
        data=_request_two_bridges_data(
            context.chain_id, transaction, mint_value, bridge_address, 0, calldata
        ),
        value=mint_value,
        mint_value=mint_value,
        approvals=approvals,
    )


def _build_eth_to_non_eth_based(
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    base_cost: int,
) -> DepositPlan:
    mint_value = _mint_value(transaction, base_cost + transaction.operator_tip)
    shared_bridge = bridges.shared_l1_default_bridge

    approvals = []
    if transaction.approve_base_erc20:
        approvals.append(
            ApprovalRequest(
                context.base_token,
                shared_bridge,
                mint_value,
                transaction.approve_base_options,
            )
        )

    calldata = _second_bridge_calldata(ETH_ADDRESS_IN_CONTRACTS, 0, transaction.to)
    return DepositPlan(
        route=DepositRoute.ETH_TO_NON_ETH_BASED,
        data=_request_two_bridges_data(
            context.chain_id,
            transaction,
            mint_value,
            shared_bridge,
            transaction.amount,
            calldata,
        ),
        value=transaction.amount,
        mint_value=mint_value,
        approvals=approvals,
    )


def _build_base_token_to_non_eth_based(
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    base_cost: int,
) -> DepositPlan:
    mint_value = _mint_value(
        transaction, base_cost + transaction.operator_tip + transaction.amount
    )

    approvals = []
    if transaction.approve_base_erc20:
        approvals.append(
            ApprovalRequest(
                context.base_token,
                bridges.shared_l1_default_bridge,
                mint_value,
                transaction.approve_base_options,
            )
        )

    msg = deposit_to_request_execute(transaction, mint_value)
    return DepositPlan(
        route=DepositRoute.BASE_TOKEN_TO_NON_ETH_BASED,
        data=_request_direct_data(context.chain_id, msg),
        value=0,
        mint_value=mint_value,
        approvals=approvals,
    )


def _build_token_to_non_eth_based(
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    base_cost: int,
) -> DepositPlan:
    mint_value = _mint_value(transaction, base_cost + transaction.operator_tip)
    bridge_address = transaction.bridge_address or bridges.shared_l1_default_bridge

    approvals = []
    if transaction.approve_base_erc20:
        approvals.append(
            ApprovalRequest(
                context.base_token,
                bridges.shared_l1_default_bridge,
                mint_value,
                transaction.approve_base_options,
            )
        )
    if transaction.approve_erc20:
        approvals.append(
            ApprovalRequest(
                transaction.token,
                bridge_address,
                transaction.amount,
                transaction.approve_options,
            )
        )

    calldata = _second_bridge_calldata(
        transaction.token, transaction.amount, transaction.to
    )
    return DepositPlan(
        route=DepositRoute.TOKEN_TO_NON_ETH_BASED,
        data=_request_two_bridges_data(
            context.chain_id, transaction, mint_value, bridge_address, 0, calldata
        ),
        value=0,
        mint_value=mint_value,
        approvals=approvals,
    )


ROUTE_BUILDERS: Dict[DepositRoute, Callable[..., DepositPlan]] = {
    DepositRoute.ETH_TO_ETH_BASED: _build_eth_to_eth_based,
    DepositRoute.TOKEN_TO_ETH_BASED: _build_token_to_eth_based,
    DepositRoute.ETH_TO_NON_ETH_BASED: _build_eth_to_non_eth_based,
    DepositRoute.BASE_TOKEN_TO_NON_ETH_BASED: _build_base_token_to_non_eth_based,
    DepositRoute.TOKEN_TO_NON_ETH_BASED: _build_token_to_non_eth_based,
}


async def get_default_bridge_data(l1: L1Client, token: HexStr) -> bytes:
    token = normalize_token(token)
    if is_address_eq(token, ETH_ADDRESS_IN_CONTRACTS):
        return encode_bridge_data("Ether", "ETH", 18)

    name = await l1.read(erc20_encoder, token, "name")
    symbol = await l1.read(erc20_encoder, token, "symbol")
    decimals = await l1.read(erc20_encoder, token, "decimals")
    return encode_bridge_data(name, symbol, decimals)


def _l1_to_l2_call(
    from_: HexStr,
    to: HexStr,
    data,
    gas_per_pubdata_byte: int,
    value: int = 0,
) -> dict:
    return {
        "from": from_,
        "to": to,
        "data": data,
        "value": value,
        "eip712Meta": {"gasPerPubdata": gas_per_pubdata_byte},
    }


async def estimate_default_bridge_deposit_l2_gas(
    l1: L1Client,
    l2: L2Client,
    token: HexStr,
    amount: int,
    to: HexStr,
    from_: HexStr,
    base_token: HexStr,
    bridges: BridgeAddresses,
    gas_per_pubdata_byte: int,
) -> int:
    token = normalize_token(token)
    if is_address_eq(token, base_token):
        return await l2.estimate_gas_l1_to_l2(
            _l1_to_l2_call(from_, to, "0x", gas_per_pubdata_byte, amount)
        )

    bridge_data = await get_default_bridge_data(l1, token)
    calldata = l2_shared_bridge_encoder.encode_method(
        "finalizeDeposit", (from_, to, token, amount, bridge_data)
    )
    return await l2.estimate_gas_l1_to_l2(
        _l1_to_l2_call(
            apply_l1_to_l2_alias(bridges.shared_l1_default_bridge),
            bridges.shared_l2_default_bridge,
            calldata,
            gas_per_pubdata_byte,
        )
    )


async def estimate_custom_bridge_deposit_l2_gas(
    l1: L1Client,
    l2: L2Client,
    bridge_address: HexStr,
    token: HexStr,
    amount: int,
    to: HexStr,
    from_: HexStr,
    bridge_data: Optional[bytes],
    gas_per_pubdata_byte: int,
) -> int:
    if not bridge_data:
        bridge_data = await get_default_bridge_data(l1, token)

    chain_id = await l2.get_chain_id()
    l2_bridge_address = await l1.read(
        l1_shared_bridge_encoder, bridge_address, "l2BridgeAddress", chain_id
    )
    calldata = l2_shared_bridge_encoder.encode_method(
        "finalizeDeposit", (from_, to, token, amount, bridge_data)
    )
    return await l2.estimate_gas_l1_to_l2(
        _l1_to_l2_call(
            apply_l1_to_l2_alias(bridge_address),
            l2_bridge_address,
            calldata,
            gas_per_pubdata_byte,
        )
    )


async def _get_l2_gas_limit(
    l1: L1Client,
    l2: L2Client,
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
) -> int:
    if transaction.bridge_address is not None:
        return await estimate_custom_bridge_deposit_l2_gas(
            l1,
            l2,
            transaction.bridge_address,
            transaction.token,
            transaction.amount,
            transaction.to,
            l1.address,
            transaction.custom_bridge_data,
            transaction.gas_per_pubdata_byte,
        )

    return await estimate_default_bridge_deposit_l2_gas(
        l1,
        l2,
        transaction.token,
        transaction.amount,
        transaction.to,
        l1.address,
        context.base_token,
        bridges,
        transaction.gas_per_pubdata_byte,
    )


async def _get_deposit_tx_with_defaults(
    l1: L1Client,
    l2: L2Client,
    transaction: DepositTransaction,
    context: ChainContext,
    bridges: BridgeAddresses,
    settings: BridgeSettings,
) -> DepositTransaction:
    tx = replace(transaction, token=normalize_token(transaction.token))
    tx.options = (
        replace(tx.options) if tx.options is not None else TransactionOptions()
    )
    if tx.to is None:
        tx.to = l1.address
    if tx.refund_recipient is None:
        tx.refund_recipient = l1.address
    if tx.gas_per_pubdata_byte is None:
        tx.gas_per_pubdata_byte = settings.gas_per_pubdata_byte
    if tx.options.chain_id is None:
        tx.options.chain_id = await l1.get_chain_id()
    if tx.l2_gas_limit is None:
        tx.l2_gas_limit = await _get_l2_gas_limit(l1, l2, tx, context, bridges)
    await insert_gas_price_in_transaction_options(l1, tx.options, settings)

    return tx


async def prepare_deposit_tx(
    l1: L1Client,
    l2: L2Client,
    transaction: DepositTransaction,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> DepositPlan:
    """
    Builds the bridgehub call of a deposit without approving or sending anything.

    :param transaction: DepositTransaction class. Not optional arguments are token(L1 token address) and amount.
    :raises BaseCostExceedsValueError: when the mint value cannot cover the L2 base cost.
    """
    validate_deposit(transaction)
    l1.require_account()

    context, bridges = await resolve_topology(l1, l2)
    bridgehub = await get_bridgehub_address(l2)
    route = DepositRoute.select(context, transaction.token)
    tx = await _get_deposit_tx_with_defaults(
        l1, l2, transaction, context, bridges, settings
    )

    base_cost = await get_base_cost(
        l1,
        bridgehub,
        context.chain_id,
        gas_price_for_estimation(tx.options),
        tx.l2_gas_limit,
        tx.gas_per_pubdata_byte,
    )

    plan = ROUTE_BUILDERS[route](tx, context, bridges, base_cost)
    check_base_cost(base_cost, plan.mint_value)
    plan.base_cost = base_cost

    options = replace(tx.options, value=plan.value)
    plan.tx = {"to": bridgehub, "data": plan.data, **prepare_transaction_options(options)}
    logger.debug(
        "Deposit of %s %s routed as %s, mint value %s, base cost %s",
        tx.amount,
        tx.token,
        route.name,
        plan.mint_value,
        base_cost,
    )
    return plan


async def approve_erc20(
    l1: L1Client,
    token: HexStr,
    amount: int,
    bridge_address: HexStr,
    options: TransactionOptions = None,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> TxReceipt:
    """
    Approves the bridge to spend ``amount`` of ``token`` and waits for the receipt.

    :param token: The Ethereum address of the token.
    :param amount: The amount of the token to be approved.
    :param bridge_address: The address of the bridge contract to be approved.
    :param options: Gas and nonce overrides of the approval transaction.
    """
    if is_eth(token):
        raise InvalidRequestError(
            "ETH token can't be approved. The address of the token does not exist on L1"
        )

    options = replace(options) if options is not None else TransactionOptions()
    if options.gas_limit is None:
        options.gas_limit = settings.approve_gas_limit
    await insert_gas_price_in_transaction_options(l1, options, settings)

    tx = {
        "to": token,
        "data": erc20_encoder.encode_method("approve", (bridge_address, amount)),
        **prepare_transaction_options(options),
    }
    tx_hash = await l1.send_transaction(tx)
    logger.info(
        "Approving %s of %s for %s: %s",
        amount,
        token,
        bridge_address,
        to_hex_str(tx_hash),
    )
    receipt = await l1.wait_for_transaction_receipt(tx_hash)
    if receipt["status"] != 1:
        logger.warning("Approval %s reverted", to_hex_str(tx_hash))
        raise TransactionRevertedError(to_hex_str(tx_hash), receipt)
    return receipt


async def ensure_allowance(
    l1: L1Client,
    approval: ApprovalRequest,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> Optional[TxReceipt]:
    """Approves only when the current allowance does not cover the amount."""
    allowance = await l1.get_allowance(approval.token, approval.spender)
    if allowance >= approval.amount:
        logger.debug(
            "Allowance %s of %s for %s covers %s",
            allowance,
            approval.token,
            approval.spender,
            approval.amount,
        )
        return None
    return await approve_erc20(
        l1,
        approval.token,
        approval.amount,
        approval.spender,
        approval.options,
        settings,
    )


async def deposit(
    l1: L1Client,
    l2: L2Client,
    transaction: DepositTransaction,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> HexBytes:
    """
    Transfers the specified token from the associated account on the L1 network to the target account on the L2 network.
    The token can be either ETH or any ERC20 token. For ERC20 tokens,
    enough approved tokens must be associated with the specified L1 bridge (default one or the one defined in transaction.bridge_address).
    In this case, transaction.approve_erc20 can be enabled to perform token approval.
    If there are already enough approved tokens for the L1 bridge, token approval will be skipped.

    :param transaction: DepositTransaction class. Not optional arguments are token(L1 token address) and amount.
    :returns: Hash of the L1 transaction.
    """
    plan = await prepare_deposit_tx(l1, l2, transaction, settings)
    for approval in plan.approvals:
        await ensure_allowance(l1, approval, settings)

    if plan.tx.get("gas") is None:
        plan.tx["gas"] = scale_gas_limit(
            await l1.estimate_gas({**plan.tx, "from": l1.address}),
            settings.gas_limit_scale,
        )
    tx_hash = await l1.send_transaction(plan.tx)
    logger.info(
        "Deposit of %s %s (%s) sent: %s",
        transaction.amount,
        transaction.token,
        plan.route.name,
        to_hex_str(tx_hash),
    )
    return tx_hash


async def estimate_gas_deposit(
    l1: L1Client,
    l2: L2Client,
    transaction: DepositTransaction,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> int:
    """
    Estimates the amount of gas required for a deposit transaction on L1 network.
    Gas of approving ERC20 token is not included in estimation.
    """
    plan = await prepare_deposit_tx(l1, l2, transaction, settings)
    gas = await l1.estimate_gas({**plan.tx, "from": l1.address})
    return scale_gas_limit(gas, settings.gas_limit_scale)


async def get_deposit_allowance_params(
    l1: L1Client,
    l2: L2Client,
    token: HexStr,
    amount: int,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> List[AllowanceParams]:
    """Returns the token allowances a deposit of ``amount`` of ``token`` needs."""
    plan = await prepare_deposit_tx(
        l1,
        l2,
        DepositTransaction(
            token=token, amount=amount, approve_erc20=True, approve_base_erc20=True
        ),
        settings,
    )
    if plan.route is DepositRoute.ETH_TO_ETH_BASED:
        raise InvalidRequestError(
            "ETH token can't be approved! The address of the token does not exist on L1."
        )
    return [AllowanceParams(token=a.token, allowance=a.amount) for a in plan.approvals]


async def get_allowance_l1(
    l1: L1Client, l2: L2Client, token: HexStr, bridge_address: HexStr = None
) -> int:
    if bridge_address is None:
        bridge_address = (await l2.get_bridge_contracts()).shared_l1_default_bridge
    return await l1.get_allowance(token, bridge_address)


async def get_request_execute_transaction(
    l1: L1Client,
    l2: L2Client,
    transaction: RequestExecuteCallMsg,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> dict:
    """
    Returns the populated requestL2TransactionDirect transaction.

    :param transaction: RequestExecuteCallMsg class, required parameters are:
        contract_address(L2 contract to be called) and call_data (the input of the L2 transaction).
    """
    context = await get_chain_context(l1, l2)
    bridgehub = await get_bridgehub_address(l2)

    tx = replace(transaction)
    tx.options = replace(tx.options) if tx.options is not None else TransactionOptions()
    if tx.factory_deps is None:
        tx.factory_deps = []
    if tx.refund_recipient is None:
        tx.refund_recipient = l1.address
    if tx.from_ is None:
        tx.from_ = l1.address
    if tx.options.chain_id is None:
        tx.options.chain_id = await l1.get_chain_id()
    if not tx.l2_gas_limit:
        tx.l2_gas_limit = await l2.estimate_gas_l1_to_l2(
            _l1_to_l2_call(
                tx.from_,
                tx.contract_address,
                to_hex_str(to_bytes(tx.call_data)),
                tx.gas_per_pubdata_byte,
                tx.l2_value,
            )
        )
    await insert_gas_price_in_transaction_options(l1, tx.options, settings)

    base_cost = await get_base_cost(
        l1,
        bridgehub,
        context.chain_id,
        gas_price_for_estimation(tx.options),
        tx.l2_gas_limit,
        tx.gas_per_pubdata_byte,
    )

    l2_costs = base_cost + tx.operator_tip + tx.l2_value
    provided_value = (
        tx.options.value if context.is_eth_based_chain else tx.mint_value
    )
    if not provided_value:
        provided_value = l2_costs
        if context.is_eth_based_chain:
            tx.options.value = provided_value
    tx.mint_value = provided_value

    check_base_cost(base_cost, provided_value)

    return {
        "to": bridgehub,
        "data": _request_direct_data(context.chain_id, tx),
        "value": 0,
        **prepare_transaction_options(tx.options),
    }


async def request_execute(
    l1: L1Client,
    l2: L2Client,
    transaction: RequestExecuteCallMsg,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> HexBytes:
    """Requests execution of an L2 transaction from L1."""
    tx = await get_request_execute_transaction(l1, l2, transaction, settings)
    tx_hash = await l1.send_transaction(tx)
    logger.info("Request execute sent: %s", to_hex_str(tx_hash))
    return tx_hash
