from unittest import TestCase

from tests.unit.fixtures import APPROVAL_TOKEN, PAYMASTER
from zkbridge.core.types import PaymasterParams
from zkbridge.manage_contracts.paymaster_utils import (
    PaymasterFlowEncoder,
    get_approval_based_paymaster_input,
    get_general_paymaster_input,
    get_paymaster_params,
)


class PaymasterInputTest(TestCase):
    def setUp(self) -> None:
        self.encoder = PaymasterFlowEncoder()

    def test_approval_based(self):
        paymaster_input = get_approval_based_paymaster_input(
            APPROVAL_TOKEN, 1, b"\xab"
        )

        self.assertEqual(paymaster_input[:4], bytes.fromhex("949431dc"))
        name, args = self.encoder.decode_function_input(paymaster_input)
        self.assertEqual(name, "approvalBased")
        self.assertEqual(args["_token"], APPROVAL_TOKEN)
        self.assertEqual(args["_minAllowance"], 1)
        self.assertEqual(args["_innerInput"], b"\xab")

    def test_approval_based_lowercase_token(self):
        paymaster_input = get_approval_based_paymaster_input(APPROVAL_TOKEN.lower(), 1)
        _, args = self.encoder.decode_function_input(paymaster_input)
        self.assertEqual(args["_token"], APPROVAL_TOKEN)
        self.assertEqual(args["_innerInput"], b"")

    def test_general(self):
        paymaster_input = get_general_paymaster_input(b"\x01")

        self.assertEqual(paymaster_input[:4], bytes.fromhex("8c5a3445"))
        name, args = self.encoder.decode_function_input(paymaster_input)
        self.assertEqual(name, "general")
        self.assertEqual(args["input"], b"\x01")

    def test_params(self):
        self.assertEqual(
            get_paymaster_params(PAYMASTER, b"\x01"),
            PaymasterParams(paymaster=PAYMASTER, paymaster_input=b"\x01"),
        )
