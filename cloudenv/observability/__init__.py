from cloudenv.observability.logger import TRACE, BoundLogger, logger

__all__ = ["TRACE", "BoundLogger", "logger"]
