from .client import LeonardoClient
from .parse import parse_app, parse_disk, parse_runtime

__all__ = ["LeonardoClient", "parse_app", "parse_disk", "parse_runtime"]
