"""Session identifier generation."""
import random

_HEX = "0123456789abcdef"
_TEMPLATE = "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx"


def generate_session_id() -> str:
    """
    Return a random UUID-v4 shaped identifier.

    Not cryptographically unpredictable; clients may supply their own ids anyway.
    """
    chars = []
    for c in _TEMPLATE:
        if c == "x":
            chars.append(_HEX[random.getrandbits(4)])
        elif c == "y":
            # variant bits 10xx
            chars.append(_HEX[random.getrandbits(2) | 0x8])
        else:
            chars.append(c)
    return "".join(chars)
