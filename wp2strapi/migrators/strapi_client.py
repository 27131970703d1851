"""
Strapi API helpers for the WordPress → Strapi migration.

This module implements the low-level HTTP contracts of the destination:
downloading a source asset, uploading it through the Upload plugin
(``POST /api/upload`` with a multipart ``files`` field) and creating an
entry in the posts collection (``POST /api/posts`` with a ``data``
envelope).  Every request carries a bounded timeout.  Transport errors,
timeouts and non-2xx responses are all raised as
:class:`~wp2strapi.utils.errors.NetworkError`; a response that does not have
the documented shape is raised as :class:`~wp2strapi.utils.errors.FormatError`.
Nothing here retries; retries are the caller's decision.

Usage example::

    client = StrapiClient({"base_url": "http://localhost:1337",
                           "upload_path": "/api/upload",
                           "posts_path": "/api/posts"})
    uploaded = client.rehost_image("https://blog.example.com/wp-content/uploads/cat.jpg")
    client.create_post({"data": {"title": "Cats", "slug": "cats", ...}})

The methods are blocking; the async pipeline runs them in worker threads.
"""

from __future__ import annotations

import mimetypes
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

import requests

from wp2strapi.utils.errors import FormatError, NetworkError

DEFAULT_TIMEOUT = 30.0


def strapi_headers(cfg: Dict[str, Any]) -> Dict[str, str]:
    """
    Construct the default headers for Strapi API requests.

    :param cfg: The ``strapi`` configuration section.  ``api_token`` is
        optional; public endpoints need no Authorization header.
    """
    token = cfg.get("api_token")
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def filename_from_url(url: str, default: str = "image") -> str:
    """Last path segment of ``url`` without query string or fragment."""
    return url.split("#")[0].split("?")[0].rstrip("/").split("/")[-1] or default


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class StrapiClient:
    """Blocking client for the Strapi endpoints used by the migration."""

    def __init__(self, cfg: Dict[str, Any]) -> None:
        self.cfg = cfg
        self.base_url: str = cfg["base_url"].rstrip("/")
        self.upload_url = f"{self.base_url}{cfg['upload_path']}"
        self.posts_url = f"{self.base_url}{cfg['posts_path']}"
        self.timeout = float(cfg.get("timeout") or DEFAULT_TIMEOUT)

    def absolute_url(self, url: str) -> str:
        """Join a URL returned by Strapi (usually ``/uploads/...``) to the base URL."""
        if urlparse(url).scheme:
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def download_file(self, url: str) -> Tuple[str, bytes, str]:
        """
        Download a source asset.

        :return: ``(filename, content, content_type)``
        :raises NetworkError: on transport error, timeout or non-2xx status.
        """
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to download {url}: {e}") from e
        if not resp.ok:
            raise NetworkError(
                f"Failed to download: {resp.status_code} {resp.reason}",
                status_code=resp.status_code,
            )

        filename = filename_from_url(url)
        content_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip()
        if not content_type:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return filename, resp.content, content_type

    def upload_file(self, filename: str, content: bytes, content_type: str) -> Dict[str, str]:
        """
        Upload a file to the Strapi media library.

        :return: ``{"url": <absolute url>, "name": <stored filename>}``
        :raises NetworkError: on transport error, timeout or non-2xx status.
        :raises FormatError: if the response is not a list whose first
            element has ``url`` and ``name``.
        """
        try:
            resp = requests.post(
                self.upload_url,
                headers=strapi_headers(self.cfg),
                files={"files": (filename, content, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Upload failed for {filename}: {e}") from e
        if not resp.ok:
            raise NetworkError(
                f"Upload failed: {resp.status_code}",
                status_code=resp.status_code,
                details=_json_or_none(resp),
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise FormatError("Invalid upload response format") from e
        first: Optional[Dict[str, Any]] = data[0] if isinstance(data, list) and data else None
        if not isinstance(first, dict) or not first.get("url") or not first.get("name"):
            raise FormatError("Invalid upload response format")
        return {"url": self.absolute_url(first["url"]), "name": first["name"]}

    def rehost_image(self, url: str) -> Dict[str, str]:
        """Download ``url`` and upload it to Strapi in one step."""
        filename, content, content_type = self.download_file(url)
        return self.upload_file(filename, content, content_type)

    def create_post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an entry in the posts collection.

        :param payload: Request body, ``{"data": {...}}``.
        :return: The decoded response body (empty dict if not JSON).
        :raises NetworkError: on failure, with the JSON error body (if any)
            attached as ``details``.
        """
        try:
            resp = requests.post(
                self.posts_url,
                headers={**strapi_headers(self.cfg), "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Failed to submit post: {e}") from e
        if not resp.ok:
            raise NetworkError(
                f"HTTP error! status: {resp.status_code}",
                status_code=resp.status_code,
                details=_json_or_none(resp),
            )
        body = _json_or_none(resp)
        return body if isinstance(body, dict) else {}
