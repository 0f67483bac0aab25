"""Backend contract: the blockchain data operations the gateway exposes."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List


class Backend(ABC):
    """
    Abstract backend. Every operation takes a network name and returns plain
    data; chain quantities are `seigate.codec.BigInt`.
    """

    default_network: str = "sei"

    async def start(self) -> None:
        """Acquire resources. Called once before the server reports ready."""

    async def close(self) -> None:
        """Release resources."""

    @abstractmethod
    def get_supported_networks(self) -> List[str]: ...

    @abstractmethod
    async def get_balance(self, address: str, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_latest_block(self, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_block_by_number(self, block_number: int, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_transaction(self, tx_hash: str, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_chain_info(self, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def estimate_gas(self, to: str, data: str, value: int, network: str) -> int: ...

    @abstractmethod
    async def get_erc20_balance(self, token_address: str, owner: str, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_erc20_token_info(self, token_address: str, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_erc721_token_metadata(self, token_address: str, token_id: int, network: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def get_erc1155_token_uri(self, token_address: str, token_id: int, network: str) -> str: ...

    @abstractmethod
    async def get_erc1155_balance(self, token_address: str, token_id: int, owner: str, network: str) -> int: ...

    @abstractmethod
    async def check_nft_ownership(self, token_address: str, token_id: int, owner: str, network: str) -> bool: ...

    @abstractmethod
    async def get_nft_balance(self, token_address: str, owner: str, network: str) -> int: ...

    @abstractmethod
    async def is_contract(self, address: str, network: str) -> bool: ...

    @abstractmethod
    async def read_contract(
        self, address: str, abi: List[Dict[str, Any]], function_name: str, args: List[Any], network: str
    ) -> Any: ...
