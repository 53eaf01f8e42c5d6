from eth_typing import HexStr

from zkbridge.core.types import PaymasterParams
from zkbridge.core.utils import to_bytes
from zkbridge.manage_contracts.contract_encoder_base import ContractEncoder
from zkbridge.manage_contracts.utils import paymaster_flow_abi_default


class PaymasterFlowEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(paymaster_flow_abi_default())

    def encode_approval_based(
        self, address: HexStr, min_allowance: int, inner_input: bytes
    ) -> HexStr:
        return self.encode_method(
            fn_name="approvalBased", args=(address, min_allowance, inner_input)
        )

    def encode_general(self, inputs: bytes) -> HexStr:
        return self.encode_method(fn_name="general", args=(inputs,))


def get_approval_based_paymaster_input(
    token: HexStr, min_allowance: int, inner_input: bytes = b""
) -> bytes:
    """
    Paymaster input for a paymaster that takes its fee in an ERC20 token.

    :param token: Token the paymaster is paid in.
    :param min_allowance: Allowance the paymaster gets on the token.
    :param inner_input: Extra data passed to the paymaster.
    """
    return to_bytes(
        PaymasterFlowEncoder().encode_approval_based(token, min_allowance, inner_input)
    )


def get_general_paymaster_input(inner_input: bytes = b"") -> bytes:
    return to_bytes(PaymasterFlowEncoder().encode_general(inner_input))


def get_paymaster_params(paymaster: HexStr, paymaster_input: bytes) -> PaymasterParams:
    return PaymasterParams(paymaster=paymaster, paymaster_input=paymaster_input)
