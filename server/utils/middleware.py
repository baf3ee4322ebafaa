import re
from uuid import uuid4

from .config_log import request_id_ctx

_SAFE_RID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


class RequestIDMiddleware:
    """
    - Reuses the client's X-Request-ID when it looks sane, otherwise generates one.
    - Stores it in the ContextVar read by the logging filter.
    - Echoes it back in the X-Request-ID response header.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.headers.get("X-Request-ID") or ""
        rid = incoming if _SAFE_RID.match(incoming) else uuid4().hex[:12]
        token = request_id_ctx.set(rid)
        try:
            response = self.get_response(request)
        finally:
            request_id_ctx.reset(token)
        response["X-Request-ID"] = rid
        return response
