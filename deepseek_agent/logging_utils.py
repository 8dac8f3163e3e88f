# deepseek_agent/logging_utils.py
import logging

import litellm
from rich.console import Console
from rich.logging import RichHandler


def configure_logging(debug: bool = False):
    """Routes library and agent logs to stderr through Rich. Debug mode shows everything from the agent."""
    level = logging.DEBUG if debug else logging.WARNING
    handler = RichHandler(console=Console(stderr=True), show_path=debug, rich_tracebacks=True, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.WARNING)
    logging.getLogger("deepseek_agent").setLevel(level)

    # Suppress LiteLLM debug info
    litellm.suppress_debug_info = True
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("litellm").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def set_debug(debug: bool):
    logging.getLogger("deepseek_agent").setLevel(logging.DEBUG if debug else logging.WARNING)
