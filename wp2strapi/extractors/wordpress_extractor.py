import logging
from typing import Any, Dict, List, Optional

import requests

from wp2strapi.utils.errors import FormatError, NetworkError

logger = logging.getLogger(__name__)


def _total_pages(response):
    try:
        return int(response.headers.get("X-WP-TotalPages", "1"))
    except ValueError:
        return 1


def fetch_wp_posts(
    base_url: str,
    posts_path: str = "/wp-json/wp/v2/posts",
    *,
    per_page: int = 100,
    limit: Optional[int] = None,
    timeout: float = 30,
) -> List[Dict[str, Any]]:
    """Fetches the raw posts list from the WordPress REST API.

    Pages are requested with ``page``/``per_page`` until the
    ``X-WP-TotalPages`` header says there are no more, or ``limit`` posts
    have been collected.

    Args:
        base_url (str): Site root, e.g. ``https://blog.example.com``.
        posts_path (str): Path of the posts endpoint.
        per_page (int): Page size requested from WordPress.
        limit (int, optional): Stop after this many posts.
        timeout (float): Timeout in seconds for every request.

    Returns:
        list: Post objects exactly as returned by WordPress.

    Raises:
        NetworkError: On transport errors, timeouts or non-2xx responses.
        FormatError: If a page body is not a JSON list.
    """
    url = f"{base_url.rstrip('/')}{posts_path}"
    posts: List[Dict[str, Any]] = []
    page = 1
    while True:
        logger.info("Fetching WordPress posts page %d from %s", page, url)
        try:
            response = requests.get(url, params={"page": page, "per_page": per_page}, timeout=timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch WordPress posts: {e}") from e
        if not response.ok:
            raise NetworkError(
                f"Failed to fetch WordPress posts: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FormatError("WordPress posts response is not JSON") from e
        if not isinstance(body, list):
            raise FormatError("Expected a list of posts from WordPress")

        posts.extend(body)
        if limit is not None and len(posts) >= limit:
            return posts[:limit]
        if not body or page >= _total_pages(response):
            return posts
        page += 1

