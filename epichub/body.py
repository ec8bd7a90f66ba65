"""Request body reader for JSON API calls"""

import logging

from flask import request

logger = logging.getLogger(__name__)


def read_json_body():
    """
    Read the whole body of the current request and parse it as JSON.

    An empty body counts as ``{}``. Returns ``None`` when the body is not
    valid JSON. Bodies larger than ``MAX_CONTENT_LENGTH`` raise Werkzeug's
    ``RequestEntityTooLarge`` while reading.
    """
    raw = request.get_data(cache=True)
    if not raw:
        return {}
    data = request.get_json(force=True, silent=True)
    if data is None and raw.strip() != b'null':
        logger.warning(f"Could not parse JSON body for {request.method} {request.path}")
    return data
