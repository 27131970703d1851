import os
import sys
import time

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from wp2strapi.utils import errors


@pytest.fixture(autouse=True)
def report_dir(tmp_path, monkeypatch):
    """Keep the JSONL event reports out of the working tree."""
    path = tmp_path / "reports"
    monkeypatch.setattr(errors, "_REPORT_DIR", str(path))
    return path


class FakeStrapiClient:
    """In-process stand-in for StrapiClient."""

    def __init__(self, failing_urls=(), failing_posts=(), delay=0):
        self.failing_urls = set(failing_urls)
        self.delay = delay
        self.failing_posts = set(failing_posts)
        self.rehosted = []
        self.submitted = []

    def rehost_image(self, url):
        from wp2strapi.utils.errors import NetworkError

        self.rehosted.append(url)
        if self.delay:
            time.sleep(self.delay)
        if url in self.failing_urls:
            raise NetworkError("Failed to download: 404 Not Found", status_code=404)
        name = url.rstrip("/").split("/")[-1]
        return {"url": f"http://strapi.test/uploads/{name}", "name": name}

    def create_post(self, payload):
        from wp2strapi.utils.errors import NetworkError

        slug = payload["data"]["slug"]
        if slug in self.failing_posts:
            raise NetworkError("HTTP error! status: 400", status_code=400, details={"error": "bad"})
        self.submitted.append(payload)
        return {"data": {"id": len(self.submitted), "slug": slug}}


@pytest.fixture
def fake_client():
    return FakeStrapiClient()
