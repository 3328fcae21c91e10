"""Turns a resource's error list into something an operator can act on.

Most failures are reported by the control plane as a list of coded errors.
A failing user startup script is the exception: the control plane only says
"Userscript failed", and the useful part is the script's own output, which
the runtime leaves in its staging bucket.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import assert_never

from cloudenv.api.model import App, ErrorList, ResourceError, ResourceErrorInfo, Runtime, UserScriptError
from cloudenv.constants import USER_SCRIPT_FAILURE_MARKER, USER_SCRIPT_OUTPUT_OBJECT
from cloudenv.observability.logger import logger

log = logger.bind(component="errors")

# (google_project, bucket, object_name) -> object text
type FetchObject = Callable[[str, str, str], Awaitable[str]]


def has_user_script_failure(errors: Iterable[ResourceError]) -> bool:
    return any(USER_SCRIPT_FAILURE_MARKER in e.message for e in errors)


async def classify_errors(resource: Runtime | App, fetch_object: FetchObject) -> ResourceErrorInfo:
    """``UserScriptError`` with the script output for failed GCP startup scripts.

    Everything else, Azure included, is returned as the plain error list and
    never touches object storage. Failures of the log fetch propagate.
    """
    errors = resource.errors
    match resource:
        case Runtime(cloud_context=context) if context.provider == "GCP":
            if not has_user_script_failure(errors):
                return ErrorList(errors)
            if not resource.staging_bucket:
                log.warning("Runtime {name} failed a user script but has no staging bucket", name=resource.name)
                return ErrorList(errors)
            log.debug(
                "Fetching user script output for {name} from {bucket}",
                name=resource.name, bucket=resource.staging_bucket,
            )
            detail = await fetch_object(context.resource, resource.staging_bucket, USER_SCRIPT_OUTPUT_OBJECT)
            return UserScriptError(detail=detail)
        case Runtime() | App():
            return ErrorList(errors)
        case _:
            assert_never(resource)
