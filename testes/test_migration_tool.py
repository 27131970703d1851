import json
import logging

import pytest

pytest.importorskip("bs4")
pytest.importorskip("mistune")

import main
from conftest import FakeStrapiClient
from wp2strapi import migration_tool
from wp2strapi.migration_tool import StrapiMigrationTool
from wp2strapi.utils.errors import ConfigError


def wp_post(post_id, slug, html):
    return {"id": post_id, "slug": slug, "title": {"rendered": slug}, "content": {"rendered": html}}


def make_tool(**migration):
    tool = StrapiMigrationTool(
        {
            "strapi": {"base_url": "http://strapi.test"},
            "wordpress": {"base_url": "https://blog.test"},
            "migration": migration,
        }
    )
    tool._client = FakeStrapiClient(failing_posts={"bad"})
    return tool


def test_defaults_are_filled_from_environment(monkeypatch):
    monkeypatch.setenv("STRAPI_BASE_URL", "http://cms.test")
    monkeypatch.setenv("STRAPI_API_TOKEN", "tok")
    tool = StrapiMigrationTool()
    assert tool.config["strapi"]["base_url"] == "http://cms.test"
    assert tool.config["strapi"]["api_token"] == "tok"
    assert tool.config["strapi"]["upload_path"] == "/api/upload"
    assert tool.config["wordpress"]["posts_path"] == "/wp-json/wp/v2/posts"
    assert tool.config["migration"] == {"dry_run": False, "limit": None, "concurrency": 8, "image_blocks": False}


def test_caller_config_is_left_untouched():
    config = {"strapi": {"base_url": "http://strapi.test"}, "migration": {"limit": 2}}
    tool = StrapiMigrationTool(config)
    tool.config["migration"]["dry_run"] = True
    assert config == {"strapi": {"base_url": "http://strapi.test"}, "migration": {"limit": 2}}
    assert tool.config["strapi"]["upload_path"] == "/api/upload"


def test_config_file_values_win_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"strapi": {"base_url": "http://file.test"}, "migration": {"limit": 3}}))
    tool = StrapiMigrationTool(config_file=str(path))
    assert tool.config["strapi"]["base_url"] == "http://file.test"
    assert tool.config["migration"]["limit"] == 3


def test_broken_config_file_is_a_config_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        StrapiMigrationTool(config_file=str(path))


def test_import_posts_honours_limit():
    tool = make_tool(limit=2)
    outcomes = tool.import_posts([wp_post(i, f"p{i}", "<p>x</p>") for i in range(5)])
    assert len(outcomes) == 2


def test_run_returns_summary(monkeypatch):
    tool = make_tool()
    posts = [
        wp_post(1, "good", '<p><img src="https://ex.com/a.jpg" alt="a"></p>'),
        wp_post(2, "bad", "<p>y</p>"),
        wp_post(3, "also-good", '<p><img src="https://ex.com/a.jpg" alt="a"></p>'),
    ]
    monkeypatch.setattr(migration_tool, "fetch_wp_posts", lambda *args, **kwargs: posts)
    tool.config["migration"]["concurrency"] = 1

    summary = tool.run()
    assert summary.as_dict() == {
        "posts_total": 3,
        "posts_succeeded": 2,
        "posts_failed": 1,
        "images_processed": 2,
        "images_cached": 1,
        "images_uploaded": 1,
        "images_failed": 0,
    }


def test_run_without_source_fails_before_any_work(monkeypatch):
    tool = make_tool()
    tool.config["wordpress"]["base_url"] = ""

    def fail(*args, **kwargs):
        raise AssertionError("fetch must not be called")

    monkeypatch.setattr(migration_tool, "fetch_wp_posts", fail)
    with pytest.raises(ConfigError):
        tool.run()


@pytest.fixture
def restore_logging():
    handlers = logging.root.handlers[:]
    yield
    for handler in logging.root.handlers[:]:
        if handler not in handlers:
            logging.root.removeHandler(handler)
            handler.close()


def test_main_exit_codes(monkeypatch, tmp_path, restore_logging):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WP_BASE_URL", raising=False)
    assert main.main(["--config", "missing.json", "--skip-preflight"]) == 2

    config = tmp_path / "config.json"
    config.write_text(json.dumps({"wordpress": {"base_url": "https://blog.test"}}))
    monkeypatch.setattr(migration_tool, "fetch_wp_posts", lambda *a, **k: [wp_post(1, "p", "<p>x</p>")])
    assert main.main(["--config", str(config), "--dry-run"]) == 0
    assert (tmp_path / "reports" / "migration" / "migration.log").exists()
