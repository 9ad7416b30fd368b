import json
import logging
import signal
import sys

from common.logger import config_logger
from gateway.bootstrap import build_registry
from gateway.config.config_init import initialize_config
from gateway.domain.command import Command
from gateway.domain.errors import GatewayError


def parse_command_line(line):
    """Decode one JSON request into ``(command, identifier, headers, timeout)``."""
    request = json.loads(line)
    if not isinstance(request, dict):
        raise ValueError("Request must be a JSON object")

    identifier = request["connection"]
    if not isinstance(identifier, str) or not identifier:
        raise ValueError(f"connection must be a non-empty string, got {identifier!r}")
    test_mode = request.get("test_mode", False)
    if not isinstance(test_mode, bool):
        raise ValueError(f"test_mode must be a boolean, got {test_mode!r}")
    headers = request.get("headers") or {}
    if not isinstance(headers, dict):
        raise ValueError(f"headers must be a JSON object, got {headers!r}")

    command = Command(request["type"], request.get("data") or {}, test_mode=test_mode)
    timeout = request.get("timeout")
    if timeout is not None:
        timeout = float(timeout)
    return command, identifier, headers, timeout


class CommandGateway:
    """Reads command requests, one JSON object per line, and dispatches them."""

    def __init__(self, registry):
        self.registry = registry
        self.running = True
        self.sent = 0
        self.failed = 0
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, _sig, _frame):
        logging.info("[CommandGateway] Graceful exit")
        self.stop()

    def run(self, stream):
        for line in stream:
            if not self.running:
                break
            line = line.strip()
            if not line:
                continue
            self.handle(line)
        logging.info(f"action: gateway_finished | sent: {self.sent} | failed: {self.failed}")

    def handle(self, line):
        try:
            command, identifier, headers, timeout = parse_command_line(line)
        except (KeyError, ValueError, TypeError) as e:
            self.failed += 1
            logging.error(f"action: parse_request | result: fail | error: {e!r}")
            return
        try:
            self.registry.dispatch(command, identifier, headers, timeout=timeout)
            self.sent += 1
            logging.info(f"action: dispatch | result: success | connection: {identifier} | command: {command.command_type}")
        except GatewayError as e:
            self.failed += 1
            logging.error(f"action: dispatch | result: fail | connection: {identifier} | error: {e}")

    def stop(self):
        """Stop reading requests once the current dispatch returns."""
        self.running = False


def main():
    config = initialize_config()
    config_logger(config["logging_level"])

    registry = build_registry(config["connections"])
    gateway = CommandGateway(registry)
    try:
        gateway.run(sys.stdin)
    except KeyboardInterrupt:
        logging.info("Gateway stopped by user")
    except Exception as e:
        logging.error(f"Gateway error: {e}", exc_info=True)
        raise
    finally:
        gateway.stop()
        registry.close()
        logging.info("Gateway shutdown complete.")


if __name__ == "__main__":
    main()
