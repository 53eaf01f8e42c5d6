from typing import Union

from eth_typing import URI
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3._utils.module import attach_modules

from zkbridge.module.zksync_module import ZkSync


class ZkAsyncWeb3(AsyncWeb3):
    zksync: ZkSync

    def __init__(self, provider):
        super().__init__(provider)
        # Attach the zksync module
        attach_modules(self, {"zksync": (ZkSync,)})


class ZkSyncBuilder:
    @classmethod
    def build(cls, url: Union[URI, str]) -> ZkAsyncWeb3:
        return ZkAsyncWeb3(AsyncHTTPProvider(url))
