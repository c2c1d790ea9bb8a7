"""
Normalisation of backend replies into booleans.

Depending on the client and the command, a reply can be a native bool, an
integer count (DEL, EXISTS, MSETNX, EVAL) or a status reply such as ``OK``.
Status replies reach us as str or bytes.
"""

from typing import Any

STATUS_OK = "OK"


def to_bool(value: Any) -> bool:
    """
    Convert a backend reply to success/failure.

    Status replies (str/bytes) are successful only when they read ``OK``.
    Everything else follows Python truthiness, so ``None`` and ``0`` are
    failures while ``True`` and any nonzero count are successes.
    """
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value == STATUS_OK
    return bool(value)
