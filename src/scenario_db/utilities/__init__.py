from .logger import setup_logger, log_duration

__all__ = ["setup_logger", "log_duration"]
