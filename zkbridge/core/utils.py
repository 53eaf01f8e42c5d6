from enum import IntEnum
from fractions import Fraction
from typing import Union

from eth_abi import encode
from eth_typing import HexStr
from eth_utils import add_0x_prefix, is_hex_address, remove_0x_prefix, to_hex
from hexbytes import HexBytes

ADDRESS_MODULO = pow(2, 160)
L1_TO_L2_ALIAS_OFFSET = "0x1111000000000000000000000000000000001111"

LEGACY_ETH_ADDRESS = HexStr("0x" + "0" * 40)
ETH_ADDRESS_IN_CONTRACTS = HexStr("0x0000000000000000000000000000000000000001")
BOOTLOADER_FORMAL_ADDRESS = HexStr("0x0000000000000000000000000000000000008001")
L1_MESSENGER_ADDRESS = HexStr("0x0000000000000000000000000000000000008008")
L2_BASE_TOKEN_ADDRESS = HexStr("0x000000000000000000000000000000000000800a")

ZERO_HASH = HexStr("0x" + "0" * 64)

DEPOSIT_GAS_PER_PUBDATA_LIMIT = 800
DEFAULT_GAS_PER_PUBDATA_LIMIT = 50000
MAX_PRIORITY_FEE_PER_GAS = 100_000_000


class RecommendedGasLimit(IntEnum):
    DEPOSIT = 10000000
    EXECUTE = 620000
    ERC20_APPROVE = 50000
    DEPOSIT_GAS_PER_PUBDATA_LIMIT = 800


def to_bytes(data: Union[bytes, HexStr]) -> bytes:
    if isinstance(data, bytes):
        return bytes(data)
    return bytes.fromhex(remove_0x_prefix(data))


def encode_address(addr: Union[bytes, str]) -> bytes:
    if isinstance(addr, bytes):
        return addr
    if len(addr) == 0:
        return bytes()
    return bytes.fromhex(remove_0x_prefix(HexStr(addr)))


def int_to_bytes(x: int) -> bytes:
    return x.to_bytes((x.bit_length() + 7) // 8, byteorder="big")


def to_hex_str(data: Union[bytes, HexStr, str]) -> HexStr:
    """Lowercase, 0x-prefixed hex for bytes, HexBytes or hex strings."""
    if isinstance(data, (bytes, bytearray)):
        return HexStr(to_hex(HexBytes(data)))
    return HexStr(add_0x_prefix(HexStr(data.lower())))


def to_int(value: Union[int, str, None]) -> Union[int, None]:
    if value is None or isinstance(value, int):
        return value
    return int(value, 16)


def is_address_eq(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def is_eth(token: str) -> bool:
    return is_address_eq(token, LEGACY_ETH_ADDRESS) or is_address_eq(
        token, ETH_ADDRESS_IN_CONTRACTS
    )


def normalize_token(token: HexStr) -> HexStr:
    if is_address_eq(token, LEGACY_ETH_ADDRESS):
        return ETH_ADDRESS_IN_CONTRACTS
    return token


def is_valid_address(address) -> bool:
    return isinstance(address, str) and is_hex_address(address)


def apply_l1_to_l2_alias(address: HexStr) -> HexStr:
    value = (int(L1_TO_L2_ALIAS_OFFSET, 16) + int(address, 16)) % ADDRESS_MODULO
    return HexStr(add_0x_prefix(HexStr(format(value, "040x"))))


def undo_l1_to_l2_alias(address: HexStr) -> HexStr:
    result = int(address, 16) - int(L1_TO_L2_ALIAS_OFFSET, 16)
    if result < 0:
        result += ADDRESS_MODULO
    return HexStr(add_0x_prefix(HexStr(format(result, "040x"))))


def scale_gas_limit(gas_limit: int, factor: Fraction = Fraction(6, 5)) -> int:
    return int(gas_limit * factor)


def encode_bridge_data(name: str, symbol: str, decimals: int) -> bytes:
    """ABI encoded token metadata the L2 bridge uses when it deploys a new token."""
    name_encoded = encode(["string"], [name])
    symbol_encoded = encode(["string"], [symbol])
    decimals_encoded = encode(["uint256"], [decimals])

    return encode(
        ["bytes", "bytes", "bytes"], [name_encoded, symbol_encoded, decimals_encoded]
    )
