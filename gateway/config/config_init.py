from configparser import ConfigParser
import os
import logging

CONFIG_FILE = "config.ini"
CONNECTION_SECTION_PREFIX = "CONNECTION "


def _get(config, section, key, env_name=None, fallback=None):
    """Environment first, then the config file section, then *fallback*."""
    value = os.getenv(env_name or key)
    if value is not None:
        return value
    if config.has_option(section, key):
        return config.get(section, key, raw=True)
    if fallback is not None:
        return fallback
    raise KeyError(f"{section}.{key}")


def _connection_config(config, identifier, defaults):
    section = f"{CONNECTION_SECTION_PREFIX}{identifier}"
    env_prefix = identifier.upper()
    return {
        "identifier": identifier,
        "exchange": _get(config, section, "EXCHANGE", f"{env_prefix}_EXCHANGE"),
        "queue": _get(config, section, "QUEUE", f"{env_prefix}_QUEUE"),
        "mode": _get(config, section, "MODE", f"{env_prefix}_MODE", "persistent").lower(),
        "host": _get(config, section, "HOST", f"{env_prefix}_HOST", defaults["rabbit_host"]),
        "port": int(_get(config, section, "PORT", f"{env_prefix}_PORT", str(defaults["rabbit_port"]))),
        "username": _get(config, section, "USER", f"{env_prefix}_USER", defaults["rabbit_user"]),
        "password": _get(config, section, "PASSWORD", f"{env_prefix}_PASSWORD", defaults["rabbit_password"]),
        "virtual_host": _get(config, section, "VHOST", f"{env_prefix}_VHOST", defaults["rabbit_vhost"]),
        "heartbeat": defaults["heartbeat"],
    }


def initialize_config(config_file=CONFIG_FILE):
    """ Parse env variables or config file to find program config params

    Environment variables take precedence over the config file. Every
    identifier listed in RABBITMQ.CONNECTIONS needs its own
    ``[CONNECTION <identifier>]`` section (or the matching env variables).
    If a parameter is missing a KeyError is raised, if it could not be
    parsed a ValueError is raised.
    """
    config = ConfigParser()
    # If config.ini does not exists original config object is not modified
    config.read(config_file)

    config_params = {}
    try:
        config_params["logging_level"] = _get(config, "DEFAULT", "LOGGING_LEVEL")

        config_params["rabbit_host"] = _get(config, "RABBITMQ", "RABBIT_HOST")
        config_params["rabbit_port"] = int(_get(config, "RABBITMQ", "RABBIT_PORT", fallback="5672"))
        config_params["rabbit_user"] = _get(config, "RABBITMQ", "RABBIT_USER", fallback="guest")
        config_params["rabbit_password"] = _get(config, "RABBITMQ", "RABBIT_PASSWORD", fallback="guest")
        config_params["rabbit_vhost"] = _get(config, "RABBITMQ", "RABBIT_VHOST", fallback="/")
        heartbeat = _get(config, "RABBITMQ", "HEARTBEAT", fallback="")
        config_params["heartbeat"] = int(heartbeat) if heartbeat else None

        identifiers = _get(config, "RABBITMQ", "CONNECTIONS", fallback="")
        config_params["connections"] = [
            _connection_config(config, identifier, config_params)
            for identifier in (i.strip() for i in identifiers.split(","))
            if identifier
        ]

    except KeyError as e:
        raise KeyError(f"Key was not found. Error: {e}. Aborting gateway")
    except ValueError as e:
        raise ValueError(f"Key could not be parsed. Error: {e}. Aborting gateway")

    logging.debug(f"Gateway config initialized. Connections: {[c['identifier'] for c in config_params['connections']]}")
    return config_params
