__all__ = [
    'get_url_name',
    'get_url_path',
]

import urllib.parse
from pathlib import Path


def get_url_path(url):
    return Path(urllib.parse.urlparse(url).path)


def get_url_name(url):
    """Return the last path component of an URL."""
    return get_url_path(url).name
