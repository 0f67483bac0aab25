"""
Backend operations table.

One entry per backend operation, keyed by method name. Both the direct call
endpoint and the stream message handler (`tools/call`) dispatch through it.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from seigate.backend.base import Backend
from seigate.errors import BackendOperationFailed, GatewayError, InvalidParams, UnknownMethod

logger = logging.getLogger(__name__)


class OperationParams(BaseModel):
    """Base parameter model. Wire names are camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    network: Optional[str] = Field(default=None, description="Network name, defaults to the server default")


class NoParams(OperationParams):
    pass


class AddressParams(OperationParams):
    address: str = Field(description="EVM (0x...) or Sei (sei1...) address")


class HashParams(OperationParams):
    hash: str = Field(description="Transaction hash (0x...)")


class BlockNumberParams(OperationParams):
    block_number: int = Field(ge=0, description="Block number")


class EstimateGasParams(OperationParams):
    to: str = Field(description="Recipient address")
    data: str = Field(default="0x", description="Call data")
    value: int = Field(default=0, description="Value in wei, decimal or 0x hex")

    @field_validator("value", mode="before")
    @classmethod
    def _parse_value(cls, v):
        if v is None:
            return 0
        if isinstance(v, str):
            return int(v, 0) if v.strip() else 0
        return v


class TokenParams(OperationParams):
    token_address: str = Field(description="Token contract address")


class TokenBalanceParams(TokenParams):
    address: str = Field(description="Holder address")


class TokenIdParams(TokenParams):
    token_id: Union[int, str] = Field(description="Token id")

    @field_validator("token_id")
    @classmethod
    def _parse_token_id(cls, v):
        return int(v, 0) if isinstance(v, str) else v


class OwnedTokenParams(TokenIdParams):
    owner_address: str = Field(description="Owner address")


class OwnerParams(TokenParams):
    owner_address: str = Field(description="Owner address")


class ReadContractParams(OperationParams):
    contract_address: str = Field(description="Contract address")
    abi: Union[List[Dict[str, Any]], str] = Field(description="Contract ABI, as a list or JSON string")
    function_name: str = Field(description="Function to call")
    args: List[Any] = Field(default_factory=list, description="Function arguments")

    @field_validator("abi")
    @classmethod
    def _parse_abi(cls, v):
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"abi is not valid JSON: {e}")
        if not isinstance(v, list):
            raise ValueError("abi must be a list of ABI entries")
        return v


OperationFn = Callable[[Backend, Any], Awaitable[Any]]


@dataclass
class Operation:
    name: str
    description: str
    params: Type[OperationParams]
    fn: OperationFn

    def input_schema(self) -> Dict[str, Any]:
        return self.params.model_json_schema(by_alias=True)


OPERATIONS: Dict[str, Operation] = {}


class operation:
    """
    Register an async function in the operations table.

    @operation("get_balance", AddressParams)
    async def get_balance(backend, params): ...
    """

    def __init__(self, name: str, params: Type[OperationParams] = NoParams, description: str = ""):
        self.name = name
        self.params = params
        self.description = description

    def __call__(self, fn: OperationFn) -> OperationFn:
        description = self.description or (fn.__doc__ or "").strip()
        OPERATIONS[self.name] = Operation(self.name, description, self.params, fn)
        return fn


def get_operation(name: str) -> Operation:
    op = OPERATIONS.get(name)
    if op is None:
        raise UnknownMethod(name)
    return op


def list_operations() -> List[Operation]:
    return list(OPERATIONS.values())


async def invoke(backend: Backend, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
    """Validate `arguments` and run operation `name` against `backend`."""
    op = get_operation(name)
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidParams(f"params for {name} must be an object")
    try:
        params = op.params.model_validate(arguments)
    except ValidationError as e:
        raise InvalidParams(f"Invalid params for {name}: {e.errors(include_url=False)}")
    if params.network is None:
        params.network = backend.default_network

    try:
        return await op.fn(backend, params)
    except GatewayError:
        raise
    except Exception as e:
        logger.warning("Method %s failed: %s", name, e)
        raise BackendOperationFailed(name, str(e) or type(e).__name__) from e


# Operations


@operation("get_supported_networks")
async def get_supported_networks(backend: Backend, params: NoParams):
    """Get the list of supported networks."""
    return backend.get_supported_networks()


@operation("get_balance", AddressParams)
async def get_balance(backend: Backend, params: AddressParams):
    """Get the native token balance of an address."""
    return await backend.get_balance(params.address, params.network)


@operation("get_latest_block", NoParams)
async def get_latest_block(backend: Backend, params: NoParams):
    """Get the latest block."""
    return await backend.get_latest_block(params.network)


@operation("get_block_by_number", BlockNumberParams)
async def get_block_by_number(backend: Backend, params: BlockNumberParams):
    """Get a block by its number."""
    return await backend.get_block_by_number(params.block_number, params.network)


@operation("get_transaction", HashParams)
async def get_transaction(backend: Backend, params: HashParams):
    """Get a transaction by hash."""
    return await backend.get_transaction(params.hash, params.network)


@operation("get_transaction_receipt", HashParams)
async def get_transaction_receipt(backend: Backend, params: HashParams):
    """Get a transaction receipt by hash."""
    return await backend.get_transaction_receipt(params.hash, params.network)


@operation("get_chain_info", NoParams)
async def get_chain_info(backend: Backend, params: NoParams):
    """Get chain id, latest block number and RPC URL of a network."""
    return await backend.get_chain_info(params.network)


@operation("estimate_gas", EstimateGasParams)
async def estimate_gas(backend: Backend, params: EstimateGasParams):
    """Estimate gas for a transaction."""
    return await backend.estimate_gas(params.to, params.data, params.value, params.network)


@operation("get_erc20_balance", TokenBalanceParams)
async def get_erc20_balance(backend: Backend, params: TokenBalanceParams):
    """Get the ERC20 token balance of an address."""
    return await backend.get_erc20_balance(params.token_address, params.address, params.network)


@operation("get_erc20_token_info", TokenParams)
async def get_erc20_token_info(backend: Backend, params: TokenParams):
    """Get ERC20 token name, symbol, decimals and total supply."""
    return await backend.get_erc20_token_info(params.token_address, params.network)


@operation("get_erc721_token_metadata", TokenIdParams)
async def get_erc721_token_metadata(backend: Backend, params: TokenIdParams):
    """Get ERC721 token metadata."""
    return await backend.get_erc721_token_metadata(params.token_address, params.token_id, params.network)


@operation("get_erc1155_token_uri", TokenIdParams)
async def get_erc1155_token_uri(backend: Backend, params: TokenIdParams):
    """Get the URI of an ERC1155 token."""
    return await backend.get_erc1155_token_uri(params.token_address, params.token_id, params.network)


@operation("get_erc1155_balance", OwnedTokenParams)
async def get_erc1155_balance(backend: Backend, params: OwnedTokenParams):
    """Get the ERC1155 token balance of an owner."""
    return await backend.get_erc1155_balance(
        params.token_address, params.token_id, params.owner_address, params.network
    )


@operation("check_nft_ownership", OwnedTokenParams)
async def check_nft_ownership(backend: Backend, params: OwnedTokenParams):
    """Check whether an address owns an ERC721 token."""
    return await backend.check_nft_ownership(
        params.token_address, params.token_id, params.owner_address, params.network
    )


@operation("get_nft_balance", OwnerParams)
async def get_nft_balance(backend: Backend, params: OwnerParams):
    """Get the number of ERC721 tokens an address owns in a collection."""
    return await backend.get_nft_balance(params.token_address, params.owner_address, params.network)


@operation("is_contract", AddressParams)
async def is_contract(backend: Backend, params: AddressParams):
    """Check whether an address is a contract."""
    return await backend.is_contract(params.address, params.network)


@operation("read_contract", ReadContractParams)
async def read_contract(backend: Backend, params: ReadContractParams):
    """Call a view function of a contract."""
    return await backend.read_contract(
        params.contract_address, params.abi, params.function_name, params.args, params.network
    )
