import logging
import sys
from typing import Optional

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(console_handler)

    return logger


def log_llm_interaction(logger: logging.Logger, template_path: str, params: dict,
                        response: str, model_name: str, duration_ms: Optional[float] = None):
    """
    Logs an LLM interaction with all relevant details.

    Args:
        logger: Logger instance to use
        template_path: Path to the template used
        params: Parameters passed to the template
        response: Response from the LLM
        model_name: Name of the model used
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"LLM Request{duration_str} - Model: {model_name}")
    logger.debug(f"  Template: {template_path}")
    # Prompt inputs can be whole articles
    logger.debug(f"  Params: {_truncate_params(params)}")
    logger.info(f"  Response: {response[:200]}{'...' if len(response) > 200 else ''}")


def log_remote_call(logger: logging.Logger, tool: str, params: dict,
                    duration_ms: Optional[float] = None):
    """
    Logs a call to the remote reading-library service.

    Args:
        logger: Logger instance to use
        tool: Name of the remote tool invoked
        params: Arguments sent with the call
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.debug(f"Remote call{duration_str} - Tool: {tool}")
    logger.debug(f"  Arguments: {params}")


def _truncate_params(params: dict, limit: int = 200) -> dict:
    return {
        key: (f"{value[:limit]}..." if isinstance(value, str) and len(value) > limit else value)
        for key, value in params.items()
    }
