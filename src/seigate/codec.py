"""
JSON encoding for backend results and the call envelope model.

Chain quantities are unbounded integers. They are emitted as decimal strings so
clients parsing numbers as doubles do not lose precision.
"""
import dataclasses
import json
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

JSONRPC_VERSION = "2.0"

# Largest integer a double represents exactly
MAX_SAFE_INTEGER = 2**53 - 1


class BigInt(int):
    """Marker for unbounded chain quantities (wei, gas, block numbers)."""

    def __repr__(self):
        return f"BigInt({int(self)})"


def to_jsonable(value: Any) -> Any:
    """Recursively convert a backend result into JSON-safe values."""
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, BigInt):
        return str(int(value))
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump(by_alias=True))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    return json.dumps(to_jsonable(value), separators=(",", ":"))


class CallEnvelope(BaseModel):
    """Stateless JSON-RPC call. Extra members are ignored."""
    model_config = ConfigDict(extra="ignore")

    jsonrpc: Any = None
    id: Any = None
    method: Any = None
    params: Any = None


def success(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": to_jsonable(result)}


def failure(request_id: Any, error: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}
