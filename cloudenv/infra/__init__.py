from cloudenv.infra.cancel import CancelToken, OperationCancelled
from cloudenv.infra.http import BearerAuth, HttpClient, HttpError

__all__ = [
    "BearerAuth",
    "CancelToken",
    "HttpClient",
    "HttpError",
    "OperationCancelled",
]
