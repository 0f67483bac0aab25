"""Backend: blockchain data operations behind the gateway."""
from seigate.backend.base import Backend
from seigate.backend.networks import Network, NetworkRegistry, UnsupportedNetwork
from seigate.backend.rpc import EvmRpcClient, UpstreamError
from seigate.backend.services import SeiBackend

__all__ = [
    "Backend",
    "Network",
    "NetworkRegistry",
    "UnsupportedNetwork",
    "EvmRpcClient",
    "UpstreamError",
    "SeiBackend",
]
