"""Guard for the admin API: shared secret header or signed bearer token."""

import logging
from functools import wraps
from flask import request, g

from license_console.exceptions import UnauthorizedError
from license_console.services.auth_service import is_admin_request

logger = logging.getLogger(__name__)


def admin_required(view):
    """Reject the request with a 401 JSON error unless it carries admin credentials."""
    @wraps(view)
    def guarded(*args, **kwargs):
        if not is_admin_request(request.headers):
            logger.warning(f"Rejected admin call {request.method} {request.path} from {request.remote_addr}")
            raise UnauthorizedError()

        g.is_admin = True
        return view(*args, **kwargs)

    return guarded
