import importlib.resources as pkg_resources
import json

from zkbridge.manage_contracts import contract_abi
from zkbridge.manage_contracts.contract_encoder_base import ContractEncoder

abi_cache = {}


def _load_abi(file_name: str):
    if file_name not in abi_cache:
        with pkg_resources.files(contract_abi).joinpath(file_name).open(
            mode="r"
        ) as json_file:
            data = json.load(json_file)
            abi_cache[file_name] = data["abi"] if isinstance(data, dict) else data
    return abi_cache[file_name]


def bridgehub_abi_default():
    return _load_abi("IBridgehub.json")


def l1_shared_bridge_abi_default():
    return _load_abi("IL1SharedBridge.json")


def l1_bridge_abi_default():
    return _load_abi("IL1ERC20Bridge.json")


def l2_shared_bridge_abi_default():
    return _load_abi("IL2SharedBridge.json")


def eth_token_abi_default():
    return _load_abi("IEthToken.json")


def get_erc20_abi():
    return _load_abi("IERC20.json")


def get_zksync_hyperchain():
    return _load_abi("IZkSyncHyperchain.json")


def l1_messenger_abi_default():
    return _load_abi("IL1Messenger.json")


def paymaster_flow_abi_default():
    return _load_abi("IPaymasterFlow.json")


class BridgehubEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(bridgehub_abi_default())


class L1SharedBridgeEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(l1_shared_bridge_abi_default())


class L1BridgeEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(l1_bridge_abi_default())


class L2SharedBridgeEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(l2_shared_bridge_abi_default())


class EthTokenEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(eth_token_abi_default())


class ERC20Encoder(ContractEncoder):
    def __init__(self):
        super().__init__(get_erc20_abi())


class HyperchainEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(get_zksync_hyperchain())


class L1MessengerEncoder(ContractEncoder):
    def __init__(self):
        super().__init__(l1_messenger_abi_default())
