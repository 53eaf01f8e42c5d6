from unittest import TestCase

from eth_utils import to_checksum_address
from eth_utils.toolz import identity

from tests.unit.fixtures import PAYMASTER, SHARED_L1, SHARED_L2, address_1
from zkbridge.core.types import BridgeAddresses, PaymasterParams, ZksMessageProof
from zkbridge.module.zksync_module import (
    eth_estimate_gas_rpc,
    eth_get_transaction_receipt_rpc,
    to_bridge_address,
    to_msg_proof,
    to_transaction_receipt,
    zks_estimate_gas_l1_to_l2_rpc,
    zks_get_bridgehub_contract_rpc,
    zks_get_l2_to_l1_log_proof_rpc,
    zks_main_contract_rpc,
    zks_transaction_request_formatter,
    zksync_get_request_formatters,
    zksync_get_result_formatters,
)


class ResultFormattersTest(TestCase):
    def test_bridge_contracts(self):
        bridges = to_bridge_address(
            {
                "l1SharedDefaultBridge": SHARED_L1.lower(),
                "l2SharedDefaultBridge": SHARED_L2.lower(),
                "l1Erc20DefaultBridge": None,
            }
        )
        self.assertEqual(
            bridges,
            BridgeAddresses(
                shared_l1_default_bridge=SHARED_L1,
                shared_l2_default_bridge=SHARED_L2,
            ),
        )

    def test_proof(self):
        proof = to_msg_proof(
            {"id": "0x70", "proof": ["0x" + "AB" * 32], "root": "0x" + "cd" * 32}
        )
        self.assertEqual(
            proof,
            ZksMessageProof(id=112, proof=["0x" + "ab" * 32], root="0x" + "cd" * 32),
        )

    def test_proof_not_yet_available(self):
        self.assertIsNone(to_msg_proof(None))

    def test_transaction_receipt(self):
        receipt = to_transaction_receipt(
            {
                "transactionHash": "0x" + "bb" * 32,
                "from": address_1,
                "to": None,
                "status": "0x1",
                "blockNumber": "0x64",
                "l1BatchNumber": "0x7",
                "l1BatchTxIndex": "0x3",
                "logs": [
                    {
                        "address": "0x0000000000000000000000000000000000008008",
                        "topics": ["0x" + "01" * 32],
                        "data": "0x",
                        "l1BatchNumber": "0x7",
                        "logIndex": "0x0",
                    }
                ],
                "l2ToL1Logs": [
                    {
                        "sender": "0x0000000000000000000000000000000000008001",
                        "key": "0x" + "bb" * 32,
                        "value": "0x" + "00" * 32,
                        "l1BatchNumber": "0x7",
                        "txIndexInL1Batch": "0x3",
                        "logIndex": "0x0",
                        "isService": True,
                        "shardId": "0x0",
                    }
                ],
            }
        )

        self.assertEqual(receipt.from_, address_1.lower())
        self.assertIsNone(receipt.to)
        self.assertEqual(receipt.status, 1)
        self.assertEqual(receipt.block_number, 100)
        self.assertEqual(receipt.l1_batch_number, 7)
        self.assertEqual(receipt.l1_batch_tx_index, 3)
        self.assertEqual(receipt.logs[0].l1_batch_number, 7)
        self.assertEqual(receipt.l2_to_l1_logs[0].tx_index_in_l1_batch, 3)
        self.assertTrue(receipt.l2_to_l1_logs[0].is_service)

    def test_pending_receipt(self):
        self.assertIsNone(to_transaction_receipt(None))

    def test_formatter_lookup(self):
        self.assertIs(
            zksync_get_result_formatters(zks_main_contract_rpc, None),
            to_checksum_address,
        )
        self.assertEqual(
            zksync_get_result_formatters(zks_get_bridgehub_contract_rpc, None)(
                SHARED_L1.lower()
            ),
            SHARED_L1,
        )
        self.assertIs(
            zksync_get_result_formatters(zks_get_l2_to_l1_log_proof_rpc, None),
            to_msg_proof,
        )
        self.assertIs(
            zksync_get_result_formatters(eth_get_transaction_receipt_rpc, None),
            to_transaction_receipt,
        )
        self.assertIs(zksync_get_request_formatters(zks_main_contract_rpc), identity)


class RequestFormattersTest(TestCase):
    def test_l1_to_l2_estimate_request(self):
        request = zks_transaction_request_formatter(
            {
                "from": address_1.lower(),
                "to": SHARED_L2.lower(),
                "data": b"\x12\x34",
                "value": 5,
                "eip712Meta": {"gasPerPubdata": 800},
            }
        )
        self.assertEqual(request["from"], address_1)
        self.assertEqual(request["to"], SHARED_L2)
        self.assertEqual(request["data"], "0x1234")
        self.assertEqual(request["value"], "0x5")
        self.assertEqual(request["eip712Meta"], {"gasPerPubdata": "0x320"})

    def test_estimate_params_formatter(self):
        formatter = zksync_get_request_formatters(zks_estimate_gas_l1_to_l2_rpc)
        (request,) = formatter(({"value": 1},))
        self.assertEqual(request, {"value": "0x1"})

    def test_eip712_estimate_request(self):
        formatter = zksync_get_request_formatters(eth_estimate_gas_rpc)
        (request,) = formatter(
            (
                {
                    "to": SHARED_L2.lower(),
                    "type": 113,
                    "maxFeePerGas": 16,
                    "nonce": 2,
                    "eip712Meta": {
                        "gasPerPubdata": 50000,
                        "paymasterParams": PaymasterParams(
                            paymaster=PAYMASTER.lower(), paymaster_input=b"\x01\x02"
                        ),
                    },
                },
            )
        )
        self.assertEqual(request["to"], SHARED_L2)
        self.assertEqual(request["type"], "0x71")
        self.assertEqual(request["maxFeePerGas"], "0x10")
        self.assertEqual(request["nonce"], "0x2")
        self.assertEqual(
            request["eip712Meta"],
            {
                "gasPerPubdata": "0xc350",
                "paymasterParams": {"paymaster": PAYMASTER, "paymasterInput": [1, 2]},
            },
        )

    def test_eip712_estimate_result(self):
        formatter = zksync_get_result_formatters(eth_estimate_gas_rpc, None)
        self.assertEqual(formatter("0x5208"), 21000)
