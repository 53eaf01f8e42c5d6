import asyncio
import os

from web3 import AsyncHTTPProvider, AsyncWeb3

from zkbridge.module.module_builder import ZkSyncBuilder


async def is_node_ready(w3) -> bool:
    try:
        await w3.eth.get_block_number()
        return True
    except Exception as _:
        return False


async def wait_for_nodes():
    print("Waiting for nodes to be ready")
    max_attempts = 30
    zk_web3 = ZkSyncBuilder.build(os.getenv("ZKSYNC_PROVIDER", "http://127.0.0.1:15100"))
    eth_web3 = AsyncWeb3(AsyncHTTPProvider(os.getenv("ETH_PROVIDER", "http://127.0.0.1:15045")))

    for i in range(max_attempts):
        if await is_node_ready(eth_web3) and await is_node_ready(zk_web3):
            print("Nodes are ready")
            return
        await asyncio.sleep(20)
    raise Exception("Maximum retries exceeded.")


if __name__ == "__main__":
    try:
        asyncio.run(wait_for_nodes())
    except Exception as e:
        print(f"Error: {e}")
