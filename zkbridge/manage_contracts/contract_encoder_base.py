from typing import Any, Dict, Optional, Tuple, Union

from eth_typing import HexStr
from eth_utils import (
    collapse_if_tuple,
    event_abi_to_log_topic,
    function_abi_to_4byte_selector,
    get_abi_output_types,
    to_checksum_address,
    to_hex,
)
from hexbytes import HexBytes
from web3 import Web3
from web3._utils.abi import map_abi_data
from web3._utils.normalizers import BASE_RETURN_NORMALIZERS

from zkbridge.core.utils import to_bytes


def _normalize_value(abi_input: dict, value: Any) -> Any:
    """
    Checksums addresses, turns hex strings of bytes types into bytes and
    struct dicts into tuples.
    """
    abi_type = abi_input["type"]
    if abi_type.endswith("]"):
        item = dict(abi_input, type=abi_type[: abi_type.rindex("[")])
        return [_normalize_value(item, v) for v in value]
    if abi_type == "tuple":
        components = abi_input["components"]
        if isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        return tuple(_normalize_value(c, v) for c, v in zip(components, value))
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes") and isinstance(value, str):
        return to_bytes(HexStr(value))
    return value


class ContractEncoder:
    """
    Encodes calls and decodes results through a web3 contract that has no bound address.
    """

    def __init__(self, abi, web3: Optional[Web3] = None):
        self.web3 = web3 if web3 is not None else Web3()
        self.abi = abi
        self.instance_contract = self.web3.eth.contract(abi=self.abi)

    @property
    def contract(self):
        return self.instance_contract

    def get_function_abi(self, fn_name: str) -> dict:
        return self.instance_contract.get_function_by_name(fn_name).abi

    def selector(self, fn_name: str) -> bytes:
        return function_abi_to_4byte_selector(self.get_function_abi(fn_name))

    def encode_method(self, fn_name: str, args: Union[tuple, list]) -> HexStr:
        inputs = self.get_function_abi(fn_name)["inputs"]
        if len(inputs) == len(args):
            args = [_normalize_value(i, a) for i, a in zip(inputs, args)]
        return self.instance_contract.encode_abi(fn_name, args)

    def decode_output(self, fn_name: str, data: Union[bytes, HexStr]) -> Any:
        output_types = get_abi_output_types(self.get_function_abi(fn_name))
        decoded = self.web3.codec.decode(output_types, HexBytes(data))
        normalized = map_abi_data(BASE_RETURN_NORMALIZERS, output_types, decoded)
        if len(normalized) == 1:
            return normalized[0]
        return tuple(normalized)

    def decode_function_input(
        self, data: Union[bytes, HexStr]
    ) -> Tuple[str, Dict[str, Any]]:
        func, args = self.instance_contract.decode_function_input(data)
        return func.abi["name"], args

    def event(self, event_name: str):
        return self.instance_contract.events[event_name]()

    def event_topic(self, event_name: str) -> HexStr:
        return HexStr(to_hex(event_abi_to_log_topic(self.event(event_name).abi)))

    def decode_event_data(
        self, event_name: str, data: Union[bytes, HexStr]
    ) -> Dict[str, Any]:
        """Decodes the non-indexed arguments of an event from the log data."""
        inputs = [i for i in self.event(event_name).abi["inputs"] if not i.get("indexed")]
        values = self.web3.codec.decode(
            [collapse_if_tuple(i) for i in inputs], HexBytes(data)
        )
        return {i["name"]: v for i, v in zip(inputs, values)}


def topic_to_address(topic: Union[bytes, HexStr]) -> HexStr:
    return HexStr(to_hex(HexBytes(topic)[12:]))
