from .connection_registry import (
    TEST_PREFIX,
    ConnectionMode,
    ConnectionRecord,
    ConnectionRegistry,
    resolve_identifier,
)

__all__ = [
    "TEST_PREFIX",
    "ConnectionMode",
    "ConnectionRecord",
    "ConnectionRegistry",
    "resolve_identifier",
]
