from dataclasses import dataclass
from typing import Optional, Union

import rlp
from eth_account.datastructures import SignedMessage
from eth_account.messages import SignableMessage, encode_typed_data
from eth_typing import ChecksumAddress, HexStr
from rlp.sedes import List as rlpList
from rlp.sedes import big_endian_int, binary
from web3.types import Nonce

from zkbridge.core.types import PaymasterParams
from zkbridge.core.utils import (
    DEFAULT_GAS_PER_PUBDATA_LIMIT,
    encode_address,
    int_to_bytes,
    to_bytes,
)

EIP712_DOMAIN_NAME = "zkSync"
EIP712_DOMAIN_VERSION = "2"

EIP712_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
    ],
    "Transaction": [
        {"name": "txType", "type": "uint256"},
        {"name": "from", "type": "uint256"},
        {"name": "to", "type": "uint256"},
        {"name": "gasLimit", "type": "uint256"},
        {"name": "gasPerPubdataByteLimit", "type": "uint256"},
        {"name": "maxFeePerGas", "type": "uint256"},
        {"name": "maxPriorityFeePerGas", "type": "uint256"},
        {"name": "paymaster", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "factoryDeps", "type": "bytes32[]"},
        {"name": "paymasterInput", "type": "bytes"},
    ],
}


@dataclass
class Transaction712:
    """
    L2 transaction of type 113. Carries the paymaster that pays its fee and is
    signed over EIP-712 typed data instead of its RLP payload.
    """

    EIP_712_TX_TYPE = 113

    chain_id: int
    nonce: Nonce
    gas_limit: int
    to: Union[ChecksumAddress, str]
    value: int
    data: Union[bytes, HexStr]
    maxPriorityFeePerGas: int
    maxFeePerGas: int
    from_: HexStr
    gas_per_pub_data: int = DEFAULT_GAS_PER_PUBDATA_LIMIT
    paymaster_params: Optional[PaymasterParams] = None

    def encode(self, signature: SignedMessage) -> bytes:
        paymaster_params_data = []
        paymaster_params_elements = None
        paymaster_params = self.paymaster_params
        if paymaster_params is not None:
            paymaster_params_data = [
                encode_address(paymaster_params.paymaster),
                to_bytes(paymaster_params.paymaster_input),
            ]
            paymaster_params_elements = [binary, binary]

        class InternalRepresentation(rlp.Serializable):
            fields = [
                ("nonce", big_endian_int),
                ("maxPriorityFeePerGas", big_endian_int),
                ("maxFeePerGas", big_endian_int),
                ("gasLimit", big_endian_int),
                ("to", binary),
                ("value", big_endian_int),
                ("data", binary),
                ("chain_id", big_endian_int),
                ("unknown1", binary),
                ("unknown2", binary),
                ("chain_id2", big_endian_int),
                ("from", binary),
                ("gasPerPubdata", big_endian_int),
                ("factoryDeps", rlpList(elements=None, strict=False)),
                ("signature", binary),
                (
                    "paymaster_params",
                    rlpList(elements=paymaster_params_elements, strict=False),
                ),
            ]

        representation_params = {
            "nonce": self.nonce,
            "maxPriorityFeePerGas": self.maxPriorityFeePerGas,
            "maxFeePerGas": self.maxFeePerGas,
            "gasLimit": self.gas_limit,
            "to": encode_address(self.to),
            "value": self.value,
            "data": to_bytes(self.data),
            "chain_id": self.chain_id,
            "unknown1": b"",
            "unknown2": b"",
            "chain_id2": self.chain_id,
            "from": encode_address(self.from_),
            "gasPerPubdata": self.gas_per_pub_data,
            "factoryDeps": [],
            "signature": signature.signature,
            "paymaster_params": paymaster_params_data,
        }
        representation = InternalRepresentation(**representation_params)
        encoded_rlp = rlp.encode(representation, infer_serializer=True, cache=False)
        return int_to_bytes(self.EIP_712_TX_TYPE) + encoded_rlp

    def to_typed_data(self) -> dict:
        paymaster = 0
        paymaster_input = b""
        if self.paymaster_params is not None:
            paymaster = int(self.paymaster_params.paymaster, 16)
            paymaster_input = to_bytes(self.paymaster_params.paymaster_input)

        return {
            "types": EIP712_TYPES,
            "primaryType": "Transaction",
            "domain": {
                "name": EIP712_DOMAIN_NAME,
                "version": EIP712_DOMAIN_VERSION,
                "chainId": self.chain_id,
            },
            "message": {
                "txType": self.EIP_712_TX_TYPE,
                "from": int(self.from_, 16),
                "to": int(self.to, 16),
                "gasLimit": self.gas_limit,
                "gasPerPubdataByteLimit": self.gas_per_pub_data,
                "maxFeePerGas": self.maxFeePerGas,
                "maxPriorityFeePerGas": self.maxPriorityFeePerGas,
                "paymaster": paymaster,
                "nonce": self.nonce,
                "value": self.value,
                "data": to_bytes(self.data),
                "factoryDeps": [],
                "paymasterInput": paymaster_input,
            },
        }

    def signable_message(self) -> SignableMessage:
        return encode_typed_data(full_message=self.to_typed_data())
