from __future__ import annotations

"""Commands published through the gateway."""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union


class AbstractCommand(ABC):
    """What the dispatcher needs from a command: a payload and a test flag."""

    @abstractmethod
    def is_test_mode(self) -> bool:
        pass

    @abstractmethod
    def to_json(self) -> Union[str, bytes]:
        """Serialize the command to the payload sent over the wire."""


class Command(AbstractCommand):
    """Generic command identified by its *command_type*.

    The payload is a JSON object with the command type, its data and the
    test flag so that consumers can tell test traffic apart.
    """

    def __init__(
        self,
        command_type: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        test_mode: bool = False,
    ) -> None:
        if not command_type:
            raise ValueError("command_type must be a non-empty string")
        self.command_type = command_type
        self.data = dict(data or {})
        self.test_mode = bool(test_mode)

    def is_test_mode(self) -> bool:
        return self.test_mode

    def to_json(self) -> str:
        return json.dumps(
            {
                "__type": self.command_type,
                "__data": self.data,
                "__testMode": self.test_mode,
            }
        )

    def __repr__(self) -> str:
        return f"Command(type={self.command_type!r}, test_mode={self.test_mode})"
