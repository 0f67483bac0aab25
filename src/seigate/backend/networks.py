"""Supported networks."""
from dataclasses import dataclass
from typing import Dict, Iterable, List


class UnsupportedNetwork(ValueError):
    def __init__(self, name: str, supported: List[str]):
        super().__init__(f"Unsupported network: {name}. Supported: {', '.join(supported)}")
        self.name = name


@dataclass(frozen=True)
class Network:
    name: str
    chain_id: int
    rpc_url: str
    symbol: str = "SEI"
    decimals: int = 18


class NetworkRegistry:
    """Lookup of configured networks by name or chain id."""

    def __init__(self, networks: Iterable[Network]):
        self._by_name: Dict[str, Network] = {n.name: n for n in networks}

    def names(self) -> List[str]:
        return list(self._by_name)

    def resolve(self, name: str) -> Network:
        key = name.lower()
        if key in self._by_name:
            return self._by_name[key]
        if key.isdigit():
            for network in self._by_name.values():
                if network.chain_id == int(key):
                    return network
        raise UnsupportedNetwork(name, self.names())
