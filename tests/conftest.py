"""Shared test doubles."""
import pytest

from seigate.backend.base import Backend
from seigate.codec import BigInt


class FakeBackend(Backend):
    """In-memory backend returning canned results and recording calls."""

    def __init__(self):
        self.calls = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    def _record(self, name, *args):
        self.calls.append((name, args))

    def get_supported_networks(self):
        self._record("get_supported_networks")
        return ["sei", "sei-testnet", "sei-devnet"]

    async def get_balance(self, address, network):
        self._record("get_balance", address, network)
        if address == "0xboom":
            raise RuntimeError("upstream exploded")
        wei = BigInt(123456789012345678901234567890)
        return {"address": address, "network": network, "wei": wei, "ether": "123456789012.34567890123456789"}

    async def get_latest_block(self, network):
        self._record("get_latest_block", network)
        return {"number": BigInt(100), "hash": "0xabc"}

    async def get_block_by_number(self, block_number, network):
        self._record("get_block_by_number", block_number, network)
        return {"number": BigInt(block_number)}

    async def get_transaction(self, tx_hash, network):
        self._record("get_transaction", tx_hash, network)
        return {"hash": tx_hash, "value": BigInt(1)}

    async def get_transaction_receipt(self, tx_hash, network):
        self._record("get_transaction_receipt", tx_hash, network)
        return {"transactionHash": tx_hash, "status": "success"}

    async def get_chain_info(self, network):
        self._record("get_chain_info", network)
        return {"network": network, "chainId": 1329, "blockNumber": BigInt(100)}

    async def estimate_gas(self, to, data, value, network):
        self._record("estimate_gas", to, data, value, network)
        return BigInt(21000)

    async def get_erc20_balance(self, token_address, owner, network):
        self._record("get_erc20_balance", token_address, owner, network)
        return {"raw": BigInt(5), "formatted": "0.000000000000000005"}

    async def get_erc20_token_info(self, token_address, network):
        self._record("get_erc20_token_info", token_address, network)
        return {"name": "Token", "symbol": "TKN", "decimals": 18}

    async def get_erc721_token_metadata(self, token_address, token_id, network):
        self._record("get_erc721_token_metadata", token_address, token_id, network)
        return {"id": BigInt(token_id), "tokenURI": "ipfs://x"}

    async def get_erc1155_token_uri(self, token_address, token_id, network):
        self._record("get_erc1155_token_uri", token_address, token_id, network)
        return "ipfs://{id}"

    async def get_erc1155_balance(self, token_address, token_id, owner, network):
        self._record("get_erc1155_balance", token_address, token_id, owner, network)
        return BigInt(3)

    async def check_nft_ownership(self, token_address, token_id, owner, network):
        self._record("check_nft_ownership", token_address, token_id, owner, network)
        return True

    async def get_nft_balance(self, token_address, owner, network):
        self._record("get_nft_balance", token_address, owner, network)
        return BigInt(2)

    async def is_contract(self, address, network):
        self._record("is_contract", address, network)
        return False

    async def read_contract(self, address, abi, function_name, args, network):
        self._record("read_contract", address, function_name, tuple(args), network)
        return BigInt(42)


@pytest.fixture
def backend():
    return FakeBackend()
