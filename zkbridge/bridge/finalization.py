import logging
from dataclasses import replace
from typing import Optional, Tuple

from eth_typing import HexStr
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, Web3Exception

from zkbridge.account.utils import prepare_transaction_options
from zkbridge.bridge.fees import insert_gas_price_in_transaction_options
from zkbridge.bridge.messages import (
    decode_withdrawal_message,
    get_message_body,
    get_message_sender,
    get_withdrawal_l2_to_l1_log,
    get_withdrawal_log,
    is_bootloader_message,
    is_failure_notification,
    locate_message,
)
from zkbridge.core.errors import (
    CannotClaimSuccessfulDepositError,
    MessageLogNotFoundError,
    NotAFailedBridgeDepositError,
    TransactionRevertedError,
    WithdrawalLogNotFoundError,
)
from zkbridge.core.settings import DEFAULT_SETTINGS, BridgeSettings
from zkbridge.core.types import (
    BridgeAddresses,
    FinalizeWithdrawalParams,
    Log,
    PriorityOpConfirmation,
    ProofLookup,
    ProofStatus,
    TransactionHash,
    TransactionOptions,
    TransactionReceipt,
    WithdrawalState,
    ZksMessageProof,
)
from zkbridge.core.utils import (
    L2_BASE_TOKEN_ADDRESS,
    ZERO_HASH,
    is_address_eq,
    to_hex_str,
    undo_l1_to_l2_alias,
)
from zkbridge.manage_contracts.utils import (
    L1BridgeEncoder,
    L1SharedBridgeEncoder,
    L2SharedBridgeEncoder,
)
from zkbridge.provider.clients import L1Client, L2Client

logger = logging.getLogger(__name__)

l1_bridge_encoder = L1BridgeEncoder()
l1_shared_bridge_encoder = L1SharedBridgeEncoder()
l2_shared_bridge_encoder = L2SharedBridgeEncoder()


async def get_log_proof(
    l2: L2Client, tx_hash: TransactionHash, index: Optional[int] = None
) -> Optional[ZksMessageProof]:
    """
    Returns the proof of an L2->L1 log, None while its batch is not committed.

    :param index: Position of the log among all L2->L1 logs of the transaction.
    """
    return await l2.get_log_proof(tx_hash, index)


async def lookup_withdrawal_proof(
    l2: L2Client, withdraw_hash: TransactionHash, index: int = 0
) -> ProofLookup:
    """
    Looks up the inclusion proof of the ``index``-th withdrawal message of an
    L2 transaction without raising for the expected absences.
    """
    receipt = await l2.get_transaction_receipt(withdraw_hash)
    if receipt is None:
        return ProofLookup(status=ProofStatus.MESSAGE_NOT_FOUND)
    try:
        log_index, log = get_withdrawal_l2_to_l1_log(receipt, index)
    except WithdrawalLogNotFoundError:
        return ProofLookup(status=ProofStatus.MESSAGE_NOT_FOUND)

    proof = await get_log_proof(l2, withdraw_hash, log_index)
    if proof is None:
        return ProofLookup(
            status=ProofStatus.PROOF_PENDING, log_index=log_index, log=log
        )
    return ProofLookup(
        status=ProofStatus.PROOF_AVAILABLE, log_index=log_index, log=log, proof=proof
    )


def _batch_number(log: Log, receipt: TransactionReceipt) -> int:
    if log.l1_batch_number is not None:
        return log.l1_batch_number
    return receipt.l1_batch_number


async def get_finalize_withdrawal_params(
    l2: L2Client, withdraw_hash: TransactionHash, index: int = 0
) -> FinalizeWithdrawalParams:
    """
    Returns the parameters the L1 bridge needs to finalize a withdrawal.

    :param withdraw_hash: Hash of the L2 transaction where the withdrawal was initiated.
    :param index: In case there were multiple withdrawals in one transaction, you may pass an index of the
        withdrawal you want to finalize.
    :raises WithdrawalLogNotFoundError: when the message is missing or its batch is not committed yet.
    """
    receipt = await l2.get_transaction_receipt(withdraw_hash)
    if receipt is None:
        raise WithdrawalLogNotFoundError(to_hex_str(withdraw_hash), index)

    log, l1_batch_tx_id = get_withdrawal_log(receipt, index)
    l2_to_l1_log_index, _ = get_withdrawal_l2_to_l1_log(receipt, index)
    sender = get_message_sender(log)
    proof = await get_log_proof(l2, withdraw_hash, l2_to_l1_log_index)
    if proof is None:
        raise WithdrawalLogNotFoundError(to_hex_str(withdraw_hash), index)

    return FinalizeWithdrawalParams(
        l1_batch_number=_batch_number(log, receipt),
        l2_message_index=proof.id,
        l2_tx_number_in_block=l1_batch_tx_id,
        message=get_message_body(log),
        sender=sender,
        proof=proof.proof,
    )


async def _get_l1_bridge_for_sender(
    l2: L2Client, sender: HexStr, bridges: BridgeAddresses
) -> Tuple[HexStr, bool]:
    """Returns the L1 bridge that finalizes messages of ``sender`` and whether it is the legacy one."""
    if is_address_eq(sender, L2_BASE_TOKEN_ADDRESS):
        return bridges.shared_l1_default_bridge, False
    if bridges.erc20_l2_default_bridge and is_address_eq(
        sender, bridges.erc20_l2_default_bridge
    ):
        return bridges.erc20_l1_default_bridge, True
    l1_bridge = await l2.read(l2_shared_bridge_encoder, sender, "l1SharedBridge")
    return l1_bridge, False


async def _get_l1_shared_bridge_for_sender(
    l2: L2Client, sender: HexStr, bridges: BridgeAddresses
) -> HexStr:
    if is_address_eq(sender, L2_BASE_TOKEN_ADDRESS):
        return bridges.shared_l1_default_bridge
    return await l2.read(l2_shared_bridge_encoder, sender, "l1SharedBridge")


async def is_withdrawal_finalized(
    l1: L1Client, l2: L2Client, withdraw_hash: TransactionHash, index: int = 0
) -> bool:
    """
    Returns whether the withdrawal has been finalized on L1. A withdrawal whose
    batch is not committed yet is reported as not finalized.

    :raises WithdrawalLogNotFoundError: when the transaction sent no withdrawal message.
    """
    receipt = await l2.get_transaction_receipt(withdraw_hash)
    if receipt is None:
        raise WithdrawalLogNotFoundError(to_hex_str(withdraw_hash), index)

    log, _ = get_withdrawal_log(receipt, index)
    l2_to_l1_log_index, _ = get_withdrawal_l2_to_l1_log(receipt, index)
    sender = get_message_sender(log)
    proof = await get_log_proof(l2, withdraw_hash, l2_to_l1_log_index)
    if proof is None:
        logger.debug("No proof yet for withdrawal %s", to_hex_str(withdraw_hash))
        return False

    chain_id = await l2.get_chain_id()
    bridges = await l2.get_bridge_contracts()
    l1_bridge = await _get_l1_shared_bridge_for_sender(l2, sender, bridges)
    return await l1.read(
        l1_shared_bridge_encoder,
        l1_bridge,
        "isWithdrawalFinalized",
        chain_id,
        _batch_number(log, receipt),
        proof.id,
    )


async def get_withdrawal_state(
    l1: L1Client, l2: L2Client, withdraw_hash: TransactionHash, index: int = 0
) -> WithdrawalState:
    lookup = await lookup_withdrawal_proof(l2, withdraw_hash, index)
    if lookup.status is not ProofStatus.PROOF_AVAILABLE:
        return WithdrawalState.NOT_YET_PROCESSABLE
    if await is_withdrawal_finalized(l1, l2, withdraw_hash, index):
        return WithdrawalState.FINALIZED
    return WithdrawalState.PROCESSABLE


async def _send_l1(
    l1: L1Client,
    to: HexStr,
    data: HexStr,
    options: Optional[TransactionOptions],
    settings: BridgeSettings,
    l2_hash: TransactionHash,
) -> HexBytes:
    options = replace(options) if options is not None else TransactionOptions()
    await insert_gas_price_in_transaction_options(l1, options, settings)
    tx = {"to": to, "data": data, **prepare_transaction_options(options)}
    try:
        return await l1.send_transaction(tx)
    except ContractLogicError as e:
        raise TransactionRevertedError(to_hex_str(l2_hash), reason=e.message) from e


async def finalize_withdrawal(
    l1: L1Client,
    l2: L2Client,
    withdraw_hash: TransactionHash,
    index: int = 0,
    options: TransactionOptions = None,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> HexBytes:
    """
    Proves the inclusion of the L2->L1 withdrawal message on L1 and releases the funds.

    :param withdraw_hash: Hash of the L2 transaction where the withdrawal was initiated.
    :param index: In case there were multiple withdrawals in one transaction, you may pass an index of the
        withdrawal you want to finalize.
    :param options: Gas and nonce overrides of the L1 transaction.
    :raises WithdrawalLogNotFoundError: when the withdrawal cannot be proven yet.
    :raises TransactionRevertedError: when the bridge rejects the finalization, e.g. it is already finalized.
    """
    l1.require_account()
    params = await get_finalize_withdrawal_params(l2, withdraw_hash, index)
    bridges = await l2.get_bridge_contracts()
    l1_bridge, legacy = await _get_l1_bridge_for_sender(l2, params.sender, bridges)

    base_token = await l2.get_base_token_l1_address()
    message = decode_withdrawal_message(params.message, base_token)
    logger.info(
        "Finalizing withdrawal %s of %s %s to %s through %s",
        to_hex_str(withdraw_hash),
        message.amount,
        message.l1_token,
        message.l1_receiver,
        l1_bridge,
    )

    if legacy:
        data = l1_bridge_encoder.encode_method(
            "finalizeWithdrawal",
            (
                params.l1_batch_number,
                params.l2_message_index,
                params.l2_tx_number_in_block,
                params.message,
                params.proof,
            ),
        )
    else:
        chain_id = await l2.get_chain_id()
        data = l1_shared_bridge_encoder.encode_method(
            "finalizeWithdrawal",
            (
                chain_id,
                params.l1_batch_number,
                params.l2_message_index,
                params.l2_tx_number_in_block,
                params.message,
                params.proof,
            ),
        )
    return await _send_l1(l1, l1_bridge, data, options, settings, withdraw_hash)


async def claim_failed_deposit(
    l1: L1Client,
    l2: L2Client,
    deposit_hash: TransactionHash,
    options: TransactionOptions = None,
    settings: BridgeSettings = DEFAULT_SETTINGS,
) -> HexBytes:
    """
    Withdraws funds from the initiated deposit, which failed when finalizing on L2.
    If the deposit L2 transaction has failed, it sends an L1 transaction calling claimFailedDeposit method of the
    L1 bridge, which results in returning L1 tokens back to the depositor, otherwise throws the error.

    :param deposit_hash: The L2 transaction hash of the failed deposit.
    :raises CannotClaimSuccessfulDepositError: when the deposit succeeded on L2.
    :raises MessageLogNotFoundError: when the failure notification or its proof is missing.
    """
    l1.require_account()
    tx_hash = to_hex_str(deposit_hash)
    receipt = await l2.get_transaction_receipt(deposit_hash)
    if receipt is None:
        raise MessageLogNotFoundError(tx_hash)

    log_index, log = locate_message(receipt, is_failure_notification(tx_hash))
    if log.value.lower() != ZERO_HASH:
        raise CannotClaimSuccessfulDepositError(tx_hash)

    l1_bridge = undo_l1_to_l2_alias(receipt.from_)
    transaction = await l2.get_transaction(deposit_hash)
    try:
        fn_name, args = l2_shared_bridge_encoder.decode_function_input(
            transaction["input"]
        )
    except (ValueError, Web3Exception):
        raise NotAFailedBridgeDepositError(tx_hash) from None
    if fn_name != "finalizeDeposit":
        raise NotAFailedBridgeDepositError(tx_hash)

    proof = await get_log_proof(l2, deposit_hash, log_index)
    if proof is None:
        raise MessageLogNotFoundError(tx_hash)

    chain_id = await l2.get_chain_id()
    data = l1_shared_bridge_encoder.encode_method(
        "claimFailedDeposit",
        (
            chain_id,
            args["_l1Sender"],
            args["_l1Token"],
            args["_amount"],
            tx_hash,
            receipt.l1_batch_number,
            proof.id,
            receipt.l1_batch_tx_index,
            proof.proof,
        ),
    )
    logger.info(
        "Claiming failed deposit %s of %s %s through %s",
        tx_hash,
        args["_amount"],
        args["_l1Token"],
        l1_bridge,
    )
    return await _send_l1(l1, l1_bridge, data, options, settings, deposit_hash)


async def get_priority_op_confirmation(
    l2: L2Client, tx_hash: TransactionHash, index: int = 0
) -> PriorityOpConfirmation:
    """
    Returns the data needed to prove on L1 that a priority operation was executed on L2.

    :param index: Index of the bootloader log, in case the transaction produced several.
    :raises MessageLogNotFoundError: when the log or its proof is missing.
    """
    receipt = await l2.get_transaction_receipt(tx_hash)
    if receipt is None:
        raise MessageLogNotFoundError(to_hex_str(tx_hash), index)

    log_index, log = locate_message(receipt, is_bootloader_message, index)
    proof = await get_log_proof(l2, tx_hash, log_index)
    if proof is None:
        raise MessageLogNotFoundError(to_hex_str(tx_hash), index)
    return PriorityOpConfirmation(
        l1_batch_number=log.l1_batch_number,
        l2_message_index=proof.id,
        l2_tx_number_in_block=receipt.l1_batch_tx_index,
        proof=proof.proof,
    )
