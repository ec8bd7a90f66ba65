"""Static asset lookup for the web client"""

from pathlib import Path

from werkzeug.security import safe_join

MIME_TYPES = {
    'html': 'text/html',
    'js': 'text/javascript',
    'css': 'text/css',
    'json': 'application/json',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'svg': 'image/svg+xml',
    'ico': 'image/x-icon',
}

DEFAULT_MIME_TYPE = 'application/octet-stream'


def get_mime_type(ext):
    """Content-Type for a file extension given without the leading dot"""
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


def mime_type_for(filename):
    return get_mime_type(Path(filename).suffix.lstrip('.'))


def _existing_file(directory, requested):
    if not directory.is_dir():
        return None
    candidate = safe_join(str(directory), requested)
    if candidate and Path(candidate).is_file():
        return Path(candidate)
    return None


def resolve_static_path(url_path, client_dir):
    """
    Map a URL path to a file on disk: prebuilt assets in ``client/build``
    first, then the raw client directory, finally ``client/index.html``.
    """
    client_dir = Path(client_dir)
    requested = 'index.html' if url_path in ('', '/') else url_path.lstrip('/')

    for directory in (client_dir / 'build', client_dir):
        found = _existing_file(directory, requested)
        if found is not None:
            return found

    return client_dir / 'index.html'
