from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("requests")
import requests

from wp2strapi.migrators.strapi_client import StrapiClient, filename_from_url, strapi_headers
from wp2strapi.utils.errors import FormatError, NetworkError

CFG = {
    "base_url": "http://strapi.test/",
    "upload_path": "/api/upload",
    "posts_path": "/api/posts",
    "api_token": "secret",
    "timeout": 5,
}


def fake_response(status=200, json_data=None, content=b"", headers=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    resp.content = content
    resp.headers = headers or {}
    if json_data is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = json_data
    return resp


def test_headers_and_urls():
    client = StrapiClient(CFG)
    assert client.upload_url == "http://strapi.test/api/upload"
    assert client.posts_url == "http://strapi.test/api/posts"
    assert strapi_headers(CFG) == {"Authorization": "Bearer secret"}
    assert strapi_headers({}) == {}


def test_filename_from_url():
    assert filename_from_url("https://ex.com/a/b.png?x=1#f") == "b.png"
    assert filename_from_url("https://ex.com/") == "ex.com"
    assert filename_from_url("") == "image"


@patch("wp2strapi.migrators.strapi_client.requests.get")
def test_download_file(mock_get):
    mock_get.return_value = fake_response(content=b"PNG", headers={"Content-Type": "image/png; charset=x"})
    filename, content, content_type = StrapiClient(CFG).download_file("https://ex.com/a.png")
    assert (filename, content, content_type) == ("a.png", b"PNG", "image/png")
    assert mock_get.call_args.kwargs["timeout"] == 5.0


@patch("wp2strapi.migrators.strapi_client.requests.get")
def test_download_404_raises_network_error(mock_get):
    mock_get.return_value = fake_response(status=404, reason="Not Found")
    with pytest.raises(NetworkError) as exc:
        StrapiClient(CFG).download_file("https://ex.com/missing.png")
    assert exc.value.status_code == 404


@patch("wp2strapi.migrators.strapi_client.requests.get")
def test_download_timeout_raises_network_error(mock_get):
    mock_get.side_effect = requests.Timeout("too slow")
    with pytest.raises(NetworkError):
        StrapiClient(CFG).download_file("https://ex.com/slow.png")


@patch("wp2strapi.migrators.strapi_client.requests.post")
def test_upload_returns_absolute_url(mock_post):
    mock_post.return_value = fake_response(json_data=[{"url": "/uploads/a_123.png", "name": "a.png"}])
    result = StrapiClient(CFG).upload_file("a.png", b"PNG", "image/png")
    assert result == {"url": "http://strapi.test/uploads/a_123.png", "name": "a.png"}
    kwargs = mock_post.call_args.kwargs
    assert kwargs["files"] == {"files": ("a.png", b"PNG", "image/png")}
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}


@patch("wp2strapi.migrators.strapi_client.requests.post")
def test_upload_keeps_absolute_provider_urls(mock_post):
    mock_post.return_value = fake_response(json_data=[{"url": "https://cdn.test/a.png", "name": "a.png"}])
    assert StrapiClient(CFG).upload_file("a.png", b"", "image/png")["url"] == "https://cdn.test/a.png"


@pytest.mark.parametrize("body", [[], {}, [{"url": "/x"}], None])
@patch("wp2strapi.migrators.strapi_client.requests.post")
def test_upload_with_unexpected_shape_raises_format_error(mock_post, body):
    mock_post.return_value = fake_response(json_data=body)
    with pytest.raises(FormatError):
        StrapiClient(CFG).upload_file("a.png", b"", "image/png")


@patch("wp2strapi.migrators.strapi_client.requests.post")
@patch("wp2strapi.migrators.strapi_client.requests.get")
def test_rehost_image_downloads_then_uploads(mock_get, mock_post):
    mock_get.return_value = fake_response(content=b"JPG", headers={})
    mock_post.return_value = fake_response(json_data=[{"url": "/uploads/c.jpg", "name": "c.jpg"}])
    result = StrapiClient(CFG).rehost_image("https://ex.com/c.jpg")
    assert result["name"] == "c.jpg"
    assert mock_post.call_args.kwargs["files"]["files"] == ("c.jpg", b"JPG", "image/jpeg")


@patch("wp2strapi.migrators.strapi_client.requests.post")
def test_create_post_sends_json_payload(mock_post):
    mock_post.return_value = fake_response(json_data={"data": {"id": 1}})
    payload = {"data": {"title": "T", "slug": "t", "content": "", "blocksContent": []}}
    assert StrapiClient(CFG).create_post(payload) == {"data": {"id": 1}}
    assert mock_post.call_args.args[0] == "http://strapi.test/api/posts"
    assert mock_post.call_args.kwargs["json"] == payload


@patch("wp2strapi.migrators.strapi_client.requests.post")
def test_create_post_error_carries_details(mock_post):
    mock_post.return_value = fake_response(status=400, json_data={"error": {"message": "slug taken"}})
    with pytest.raises(NetworkError) as exc:
        StrapiClient(CFG).create_post({"data": {}})
    assert exc.value.status_code == 400
    assert "HTTP error! status: 400" in str(exc.value)
    assert "slug taken" in str(exc.value)
