from __future__ import annotations

import base64


def b64encode_str(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode_str(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)
