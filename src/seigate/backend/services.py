"""
SeiBackend: blockchain lookups against Sei EVM JSON-RPC endpoints and the
Cosmos bank REST API.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from seigate.backend.base import Backend
from seigate.backend.networks import Network, NetworkRegistry
from seigate.backend.rpc import EvmRpcClient, UpstreamError
from seigate.codec import BigInt

logger = logging.getLogger(__name__)

SEI_BECH32_PREFIX = "sei1"

_QUANTITY_KEYS = {
    "baseFeePerGas", "blockNumber", "chainId", "cumulativeGasUsed", "difficulty",
    "effectiveGasPrice", "gas", "gasLimit", "gasPrice", "gasUsed", "maxFeePerGas",
    "maxPriorityFeePerGas", "nonce", "number", "size", "timestamp", "totalDifficulty",
    "transactionIndex", "value",
}


def hex_to_bigint(value: Optional[str]) -> Optional[BigInt]:
    if value is None:
        return None
    return BigInt(int(value, 16))


def decode_quantities(obj: Dict[str, Any], skip: Sequence[str] = ()) -> Dict[str, Any]:
    """Convert hex quantity fields of an RPC object into BigInt."""
    out = {}
    for key, value in obj.items():
        if key in _QUANTITY_KEYS and key not in skip and isinstance(value, str) and value.startswith("0x"):
            out[key] = hex_to_bigint(value)
        else:
            out[key] = value
    return out


def format_units(value: int, decimals: int) -> str:
    """Render an integer amount with `decimals` fractional digits, trimmed."""
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str}" if frac_str else f"{sign}{whole}"


def abi_type(param: Dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples."""
    kind = param["type"]
    if kind.startswith("tuple"):
        inner = ",".join(abi_type(c) for c in param.get("components", []))
        return f"({inner}){kind[len('tuple'):]}"
    return kind


def coerce_arg(kind: str, value: Any) -> Any:
    """Convert a JSON argument into what eth_abi expects for `kind`."""
    if kind.endswith("]"):
        elem = kind[: kind.rindex("[")]
        return [coerce_arg(elem, v) for v in value]
    if kind.startswith("("):
        return tuple(value)
    if kind.startswith(("uint", "int")):
        return int(value, 0) if isinstance(value, str) else int(value)
    if kind == "address":
        return to_checksum_address(value)
    if kind == "bool":
        if isinstance(value, str):
            return value.lower() in ("true", "1")
        return bool(value)
    if kind.startswith("bytes") and isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return value


def normalize_output(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return BigInt(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [normalize_output(v) for v in value]
    return value


def find_function(abi: List[Dict[str, Any]], name: str, arg_count: int) -> Dict[str, Any]:
    candidates = [e for e in abi if e.get("type", "function") == "function" and e.get("name") == name]
    if not candidates:
        raise ValueError(f"Function {name} not found in ABI")
    for entry in candidates:
        if len(entry.get("inputs", [])) == arg_count:
            return entry
    raise ValueError(f"Function {name} does not take {arg_count} arguments")


class SeiBackend(Backend):
    """Backend implementation over httpx JSON-RPC and REST calls."""

    def __init__(
        self,
        networks: NetworkRegistry,
        default_network: str = "sei",
        cosmos_rest_urls: Sequence[str] = (),
        rpc: Optional[EvmRpcClient] = None,
    ):
        self.networks = networks
        self.default_network = default_network
        self.cosmos_rest_urls = list(cosmos_rest_urls)
        self.rpc = rpc or EvmRpcClient()

    async def start(self) -> None:
        # resolve eagerly so a bad default fails startup
        self.networks.resolve(self.default_network)

    async def close(self) -> None:
        await self.rpc.close()

    def _network(self, name: Optional[str]) -> Network:
        return self.networks.resolve(name or self.default_network)

    async def _rpc(self, network: str, method: str, params: Optional[List[Any]] = None) -> Any:
        return await self.rpc.call(self._network(network).rpc_url, method, params)

    async def _eth_call(
        self,
        network: str,
        to: str,
        signature: str,
        args: Sequence[Any] = (),
        input_types: Sequence[str] = (),
        output_types: Sequence[str] = (),
    ) -> tuple:
        data = function_signature_to_4byte_selector(signature) + encode(list(input_types), list(args))
        call = {"to": to_checksum_address(to), "data": "0x" + data.hex()}
        result = await self._rpc(network, "eth_call", [call, "latest"])
        raw = bytes.fromhex(result[2:]) if result else b""
        if not raw:
            raise UpstreamError(f"{signature} returned no data from {to}")
        return decode(list(output_types), raw)

    def get_supported_networks(self) -> List[str]:
        return self.networks.names()

    async def get_balance(self, address: str, network: str) -> Dict[str, Any]:
        if address.startswith(SEI_BECH32_PREFIX) and self.cosmos_rest_urls:
            try:
                return await self._get_cosmos_balance(address, network)
            except (UpstreamError, ValueError) as e:
                logger.info("REST API failed for %s: %s, falling back to EVM", address, e)

        net = self._network(network)
        wei = hex_to_bigint(await self._rpc(network, "eth_getBalance", [address, "latest"]))
        return {
            "address": address,
            "network": net.name,
            "wei": wei,
            "ether": format_units(wei, net.decimals),
            "symbol": net.symbol,
        }

    async def _get_cosmos_balance(self, address: str, network: str) -> Dict[str, Any]:
        first_error = None
        for base_url in self.cosmos_rest_urls:
            url = f"{base_url.rstrip('/')}/cosmos/bank/v1beta1/balances/{address}"
            try:
                data = await self.rpc.get_json(url)
            except UpstreamError as e:
                logger.info("Balance API %s failed: %s", base_url, e)
                first_error = first_error or e
                continue
            if not isinstance(data, dict) or "balances" not in data:
                raise ValueError("Invalid response format from REST API")
            return {"address": address, "balances": data["balances"], "network": network}
        raise first_error or UpstreamError("No REST API configured")

    async def get_latest_block(self, network: str) -> Dict[str, Any]:
        block = await self._rpc(network, "eth_getBlockByNumber", ["latest", False])
        return decode_quantities(block, skip=("nonce",))

    async def get_block_by_number(self, block_number: int, network: str) -> Dict[str, Any]:
        block = await self._rpc(network, "eth_getBlockByNumber", [hex(block_number), False])
        if block is None:
            raise UpstreamError(f"Block {block_number} not found")
        return decode_quantities(block, skip=("nonce",))

    async def get_transaction(self, tx_hash: str, network: str) -> Dict[str, Any]:
        tx = await self._rpc(network, "eth_getTransactionByHash", [tx_hash])
        if tx is None:
            raise UpstreamError(f"Transaction {tx_hash} not found")
        return decode_quantities(tx)

    async def get_transaction_receipt(self, tx_hash: str, network: str) -> Dict[str, Any]:
        receipt = await self._rpc(network, "eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            raise UpstreamError(f"Receipt for {tx_hash} not found")
        status = receipt.get("status")
        receipt = decode_quantities(receipt)
        if status is not None:
            receipt["status"] = "success" if int(status, 16) == 1 else "reverted"
        return receipt

    async def get_chain_info(self, network: str) -> Dict[str, Any]:
        net = self._network(network)
        chain_id, block_number = await asyncio.gather(
            self._rpc(network, "eth_chainId"),
            self._rpc(network, "eth_blockNumber"),
        )
        return {
            "network": net.name,
            "chainId": int(chain_id, 16),
            "blockNumber": hex_to_bigint(block_number),
            "rpcUrl": net.rpc_url,
        }

    async def estimate_gas(self, to: str, data: str, value: int, network: str) -> BigInt:
        tx = {"to": to, "data": data or "0x", "value": hex(value)}
        return hex_to_bigint(await self._rpc(network, "eth_estimateGas", [tx]))

    async def get_erc20_token_info(self, token_address: str, network: str) -> Dict[str, Any]:
        (name,), (symbol,), (decimals,), (total_supply,) = await asyncio.gather(
            self._eth_call(network, token_address, "name()", output_types=["string"]),
            self._eth_call(network, token_address, "symbol()", output_types=["string"]),
            self._eth_call(network, token_address, "decimals()", output_types=["uint8"]),
            self._eth_call(network, token_address, "totalSupply()", output_types=["uint256"]),
        )
        return {
            "address": token_address,
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "totalSupply": BigInt(total_supply),
            "formattedTotalSupply": format_units(total_supply, decimals),
        }

    async def get_erc20_balance(self, token_address: str, owner: str, network: str) -> Dict[str, Any]:
        (raw,), (symbol,), (decimals,) = await asyncio.gather(
            self._eth_call(
                network, token_address, "balanceOf(address)",
                [to_checksum_address(owner)], ["address"], ["uint256"],
            ),
            self._eth_call(network, token_address, "symbol()", output_types=["string"]),
            self._eth_call(network, token_address, "decimals()", output_types=["uint8"]),
        )
        return {
            "raw": BigInt(raw),
            "formatted": format_units(raw, decimals),
            "token": {"address": token_address, "symbol": symbol, "decimals": decimals},
        }

    async def get_erc721_token_metadata(self, token_address: str, token_id: int, network: str) -> Dict[str, Any]:
        (name,), (symbol,), (token_uri,) = await asyncio.gather(
            self._eth_call(network, token_address, "name()", output_types=["string"]),
            self._eth_call(network, token_address, "symbol()", output_types=["string"]),
            self._eth_call(network, token_address, "tokenURI(uint256)", [token_id], ["uint256"], ["string"]),
        )
        return {"id": BigInt(token_id), "name": name, "symbol": symbol, "tokenURI": token_uri}

    async def get_erc1155_token_uri(self, token_address: str, token_id: int, network: str) -> str:
        (uri,) = await self._eth_call(network, token_address, "uri(uint256)", [token_id], ["uint256"], ["string"])
        return uri

    async def get_erc1155_balance(self, token_address: str, token_id: int, owner: str, network: str) -> BigInt:
        (balance,) = await self._eth_call(
            network, token_address, "balanceOf(address,uint256)",
            [to_checksum_address(owner), token_id], ["address", "uint256"], ["uint256"],
        )
        return BigInt(balance)

    async def check_nft_ownership(self, token_address: str, token_id: int, owner: str, network: str) -> bool:
        try:
            (actual,) = await self._eth_call(
                network, token_address, "ownerOf(uint256)", [token_id], ["uint256"], ["address"]
            )
        except UpstreamError as e:
            logger.info("ownerOf(%s) on %s failed: %s", token_id, token_address, e)
            return False
        return actual.lower() == owner.lower()

    async def get_nft_balance(self, token_address: str, owner: str, network: str) -> BigInt:
        (balance,) = await self._eth_call(
            network, token_address, "balanceOf(address)",
            [to_checksum_address(owner)], ["address"], ["uint256"],
        )
        return BigInt(balance)

    async def is_contract(self, address: str, network: str) -> bool:
        code = await self._rpc(network, "eth_getCode", [address, "latest"])
        return bool(code) and code not in ("0x", "0x0")

    async def read_contract(
        self, address: str, abi: List[Dict[str, Any]], function_name: str, args: List[Any], network: str
    ) -> Any:
        entry = find_function(abi, function_name, len(args))
        input_types = [abi_type(p) for p in entry.get("inputs", [])]
        output_types = [abi_type(p) for p in entry.get("outputs", [])]
        values = [coerce_arg(t, v) for t, v in zip(input_types, args)]
        signature = f"{function_name}({','.join(input_types)})"
        result = await self._eth_call(network, address, signature, values, input_types, output_types)
        result = normalize_output(result)
        return result[0] if len(result) == 1 else result
