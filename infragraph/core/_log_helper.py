import logging

ROOT_LOGGER_NAME = "infragraph"


def get_logger(name: str | None = None) -> logging.Logger:
    if name is None or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def warn(message: str, *args) -> None:
    get_logger().warning(message, *args)


def info(message: str, *args) -> None:
    get_logger().info(message, *args)


def debug(message: str, *args) -> None:
    get_logger().debug(message, *args)
