from unittest import IsolatedAsyncioTestCase

from web3.exceptions import ContractLogicError

from tests.unit.fixtures import (
    BATCH_NUMBER,
    BATCH_TX_INDEX,
    DAI_L1,
    L2_CHAIN_ID,
    L2_TX_HASH,
    LEGACY_L1,
    LEGACY_L2,
    PROOF,
    PROOF_ID,
    SHARED_L1,
    SHARED_L2,
    address_1,
    base_token_withdrawal_message,
    deposit_receipt,
    make_l1,
    make_l2,
    token_withdrawal_message,
    withdrawal_receipt,
)
from zkbridge.bridge.finalization import (
    claim_failed_deposit,
    finalize_withdrawal,
    get_finalize_withdrawal_params,
    get_priority_op_confirmation,
    get_withdrawal_state,
    is_withdrawal_finalized,
    lookup_withdrawal_proof,
)
from zkbridge.core.errors import (
    AccountNotFoundError,
    CannotClaimSuccessfulDepositError,
    MessageLogNotFoundError,
    NotAFailedBridgeDepositError,
    TransactionRevertedError,
    WithdrawalLogNotFoundError,
)
from zkbridge.core.types import ProofStatus, TransactionOptions, WithdrawalState
from zkbridge.core.utils import L2_BASE_TOKEN_ADDRESS, apply_l1_to_l2_alias
from zkbridge.manage_contracts.utils import (
    L1BridgeEncoder,
    L1SharedBridgeEncoder,
    L2SharedBridgeEncoder,
)

l1_bridge_encoder = L1BridgeEncoder()
l1_shared_bridge_encoder = L1SharedBridgeEncoder()
l2_shared_bridge_encoder = L2SharedBridgeEncoder()

PROOF_BYTES = tuple(bytes.fromhex(p[2:]) for p in PROOF.proof)


class ProofLookupTest(IsolatedAsyncioTestCase):
    async def test_proof_available(self):
        l2 = make_l2(receipt=withdrawal_receipt())
        lookup = await lookup_withdrawal_proof(l2, L2_TX_HASH)

        self.assertIs(lookup.status, ProofStatus.PROOF_AVAILABLE)
        self.assertEqual(lookup.log_index, 1)
        self.assertEqual(lookup.proof, PROOF)
        l2.get_log_proof.assert_awaited_once_with(L2_TX_HASH, 1)

    async def test_proof_pending(self):
        l2 = make_l2(receipt=withdrawal_receipt(), proof=None)
        lookup = await lookup_withdrawal_proof(l2, L2_TX_HASH)

        self.assertIs(lookup.status, ProofStatus.PROOF_PENDING)
        self.assertIsNone(lookup.proof)

    async def test_message_not_found(self):
        l2 = make_l2(receipt=withdrawal_receipt(with_message=False))
        lookup = await lookup_withdrawal_proof(l2, L2_TX_HASH)

        self.assertIs(lookup.status, ProofStatus.MESSAGE_NOT_FOUND)
        l2.get_log_proof.assert_not_called()

    async def test_finalize_params(self):
        l2 = make_l2(receipt=withdrawal_receipt())
        params = await get_finalize_withdrawal_params(l2, L2_TX_HASH)

        self.assertEqual(params.l1_batch_number, BATCH_NUMBER)
        self.assertEqual(params.l2_message_index, PROOF_ID)
        self.assertEqual(params.l2_tx_number_in_block, BATCH_TX_INDEX)
        self.assertEqual(params.sender, L2_BASE_TOKEN_ADDRESS)
        self.assertEqual(params.message, base_token_withdrawal_message(address_1, 5))
        self.assertEqual(params.proof, PROOF.proof)

    async def test_finalize_params_without_proof(self):
        l2 = make_l2(receipt=withdrawal_receipt(), proof=None)
        with self.assertRaises(WithdrawalLogNotFoundError):
            await get_finalize_withdrawal_params(l2, L2_TX_HASH)


class IsWithdrawalFinalizedTest(IsolatedAsyncioTestCase):
    async def test_not_finalized(self):
        l1 = make_l1({"isWithdrawalFinalized": False})
        l2 = make_l2(receipt=withdrawal_receipt())

        self.assertFalse(await is_withdrawal_finalized(l1, l2, L2_TX_HASH))
        _, address, fn_name, *args = l1.read.call_args.args
        self.assertEqual(address, SHARED_L1)
        self.assertEqual(fn_name, "isWithdrawalFinalized")
        self.assertEqual(args, [L2_CHAIN_ID, BATCH_NUMBER, PROOF_ID])

    async def test_finalized(self):
        l1 = make_l1({"isWithdrawalFinalized": True})
        l2 = make_l2(receipt=withdrawal_receipt())
        self.assertTrue(await is_withdrawal_finalized(l1, l2, L2_TX_HASH))

    async def test_token_withdrawal_asks_bridge_of_sender(self):
        l1 = make_l1({"isWithdrawalFinalized": True})
        l2 = make_l2(
            receipt=withdrawal_receipt(
                sender=SHARED_L2,
                message=token_withdrawal_message(address_1, DAI_L1, 5),
            )
        )

        self.assertTrue(await is_withdrawal_finalized(l1, l2, L2_TX_HASH))
        _, address, fn_name = l2.read.call_args.args
        self.assertEqual((address.lower(), fn_name), (SHARED_L2.lower(), "l1SharedBridge"))

    async def test_missing_proof_is_not_finalized(self):
        l1 = make_l1()
        l2 = make_l2(receipt=withdrawal_receipt(), proof=None)

        self.assertFalse(await is_withdrawal_finalized(l1, l2, L2_TX_HASH))
        l1.read.assert_not_called()

    async def test_missing_message_raises(self):
        l2 = make_l2(receipt=withdrawal_receipt(with_message=False))
        with self.assertRaises(WithdrawalLogNotFoundError):
            await is_withdrawal_finalized(make_l1(), l2, L2_TX_HASH)

    async def test_withdrawal_state(self):
        receipt = withdrawal_receipt()
        self.assertIs(
            await get_withdrawal_state(
                make_l1(), make_l2(receipt=receipt, proof=None), L2_TX_HASH
            ),
            WithdrawalState.NOT_YET_PROCESSABLE,
        )
        self.assertIs(
            await get_withdrawal_state(make_l1(), make_l2(receipt=receipt), L2_TX_HASH),
            WithdrawalState.PROCESSABLE,
        )
        self.assertIs(
            await get_withdrawal_state(
                make_l1({"isWithdrawalFinalized": True}),
                make_l2(receipt=receipt),
                L2_TX_HASH,
            ),
            WithdrawalState.FINALIZED,
        )


class FinalizeWithdrawalTest(IsolatedAsyncioTestCase):
    async def test_base_token_withdrawal(self):
        l1 = make_l1()
        l2 = make_l2(receipt=withdrawal_receipt())

        tx_hash = await finalize_withdrawal(l1, l2, L2_TX_HASH)

        self.assertEqual(tx_hash, l1.send_transaction.return_value)
        tx = l1.send_transaction.call_args.args[0]
        self.assertEqual(tx["to"], SHARED_L1)
        self.assertIn("maxFeePerGas", tx)
        name, args = l1_shared_bridge_encoder.decode_function_input(tx["data"])
        self.assertEqual(name, "finalizeWithdrawal")
        self.assertEqual(args["_chainId"], L2_CHAIN_ID)
        self.assertEqual(args["_l2BatchNumber"], BATCH_NUMBER)
        self.assertEqual(args["_l2MessageIndex"], PROOF_ID)
        self.assertEqual(args["_l2TxNumberInBatch"], BATCH_TX_INDEX)
        self.assertEqual(args["_message"], base_token_withdrawal_message(address_1, 5))
        self.assertEqual(args["_merkleProof"], PROOF_BYTES)

    async def test_legacy_bridge_withdrawal(self):
        l1 = make_l1()
        l2 = make_l2(
            receipt=withdrawal_receipt(
                sender=LEGACY_L2,
                message=token_withdrawal_message(address_1, DAI_L1, 5),
            )
        )

        await finalize_withdrawal(l1, l2, L2_TX_HASH)

        tx = l1.send_transaction.call_args.args[0]
        self.assertEqual(tx["to"], LEGACY_L1)
        name, args = l1_bridge_encoder.decode_function_input(tx["data"])
        self.assertEqual(name, "finalizeWithdrawal")
        self.assertNotIn("_chainId", args)
        self.assertEqual(args["_l2MessageIndex"], PROOF_ID)
        l2.read.assert_not_called()

    async def test_shared_bridge_token_withdrawal(self):
        l1 = make_l1()
        l2 = make_l2(
            receipt=withdrawal_receipt(
                sender=SHARED_L2,
                message=token_withdrawal_message(address_1, DAI_L1, 5),
            )
        )

        await finalize_withdrawal(l1, l2, L2_TX_HASH)
        self.assertEqual(l1.send_transaction.call_args.args[0]["to"], SHARED_L1)

    async def test_caller_gas_price_is_kept(self):
        l1 = make_l1()
        l2 = make_l2(receipt=withdrawal_receipt())

        await finalize_withdrawal(
            l1, l2, L2_TX_HASH, options=TransactionOptions(gas_price=42)
        )
        tx = l1.send_transaction.call_args.args[0]
        self.assertEqual(tx["gasPrice"], 42)
        self.assertNotIn("maxFeePerGas", tx)

    async def test_before_batch_commit(self):
        l1 = make_l1()
        l2 = make_l2(receipt=withdrawal_receipt(), proof=None)

        with self.assertRaises(WithdrawalLogNotFoundError):
            await finalize_withdrawal(l1, l2, L2_TX_HASH)
        l1.send_transaction.assert_not_called()

    async def test_already_finalized_reverts(self):
        l1 = make_l1()
        l1.send_transaction.side_effect = ContractLogicError(
            "execution reverted: Withdrawal is already finalized"
        )
        l2 = make_l2(receipt=withdrawal_receipt())

        with self.assertRaises(TransactionRevertedError) as ctx:
            await finalize_withdrawal(l1, l2, L2_TX_HASH)
        self.assertIn("already finalized", ctx.exception.reason)

    async def test_account_required(self):
        with self.assertRaises(AccountNotFoundError):
            await finalize_withdrawal(
                make_l1(account=None), make_l2(receipt=withdrawal_receipt()), L2_TX_HASH
            )


class ClaimFailedDepositTest(IsolatedAsyncioTestCase):
    def finalize_deposit_transaction(self):
        return {
            "hash": L2_TX_HASH,
            "input": l2_shared_bridge_encoder.encode_method(
                "finalizeDeposit", (address_1, address_1, DAI_L1, 5, b"")
            ),
        }

    async def test_claim(self):
        l1 = make_l1()
        l2 = make_l2(
            receipt=deposit_receipt(apply_l1_to_l2_alias(SHARED_L1), succeeded=False),
            transaction=self.finalize_deposit_transaction(),
        )

        await claim_failed_deposit(l1, l2, L2_TX_HASH)

        tx = l1.send_transaction.call_args.args[0]
        self.assertEqual(tx["to"].lower(), SHARED_L1.lower())
        name, args = l1_shared_bridge_encoder.decode_function_input(tx["data"])
        self.assertEqual(name, "claimFailedDeposit")
        self.assertEqual(args["_chainId"], L2_CHAIN_ID)
        self.assertEqual(args["_depositSender"], address_1)
        self.assertEqual(args["_l1Token"], DAI_L1)
        self.assertEqual(args["_amount"], 5)
        self.assertEqual(args["_l2TxHash"], bytes.fromhex(L2_TX_HASH[2:]))
        self.assertEqual(args["_l2BatchNumber"], BATCH_NUMBER)
        self.assertEqual(args["_l2MessageIndex"], PROOF_ID)
        self.assertEqual(args["_l2TxNumberInBatch"], BATCH_TX_INDEX)
        self.assertEqual(args["_merkleProof"], PROOF_BYTES)
        l2.get_log_proof.assert_awaited_once_with(L2_TX_HASH, 0)

    async def test_successful_deposit_is_not_claimed(self):
        l1 = make_l1()
        l2 = make_l2(
            receipt=deposit_receipt(apply_l1_to_l2_alias(SHARED_L1), succeeded=True),
            transaction=self.finalize_deposit_transaction(),
        )

        with self.assertRaises(CannotClaimSuccessfulDepositError):
            await claim_failed_deposit(l1, l2, L2_TX_HASH)
        l1.send_transaction.assert_not_called()
        l2.get_log_proof.assert_not_called()

    async def test_not_a_bridge_deposit(self):
        l2 = make_l2(
            receipt=deposit_receipt(apply_l1_to_l2_alias(SHARED_L1), succeeded=False),
            transaction={"hash": L2_TX_HASH, "input": "0x"},
        )
        with self.assertRaises(NotAFailedBridgeDepositError):
            await claim_failed_deposit(make_l1(), l2, L2_TX_HASH)

    async def test_missing_proof(self):
        l1 = make_l1()
        l2 = make_l2(
            receipt=deposit_receipt(apply_l1_to_l2_alias(SHARED_L1), succeeded=False),
            transaction=self.finalize_deposit_transaction(),
            proof=None,
        )
        with self.assertRaises(MessageLogNotFoundError):
            await claim_failed_deposit(l1, l2, L2_TX_HASH)
        l1.send_transaction.assert_not_called()


class PriorityOpConfirmationTest(IsolatedAsyncioTestCase):
    async def test_confirmation(self):
        l2 = make_l2(receipt=deposit_receipt(address_1, succeeded=True))
        confirmation = await get_priority_op_confirmation(l2, L2_TX_HASH)

        self.assertEqual(confirmation.l1_batch_number, BATCH_NUMBER)
        self.assertEqual(confirmation.l2_message_index, PROOF_ID)
        self.assertEqual(confirmation.l2_tx_number_in_block, BATCH_TX_INDEX)
        self.assertEqual(confirmation.proof, PROOF.proof)

    async def test_missing_log(self):
        l2 = make_l2(receipt=deposit_receipt(address_1, succeeded=True))
        with self.assertRaises(MessageLogNotFoundError):
            await get_priority_op_confirmation(l2, L2_TX_HASH, index=1)
