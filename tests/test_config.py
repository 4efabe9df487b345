"""Tests for job/engine configuration parsing and config file round-trips."""

import json

import pytest

from webgather.crawler.config import (
    EngineConfig,
    JobConfig,
    load_config,
    normalize_selectors,
    parse_limit,
    save_config,
)
from webgather.crawler.errors import InvalidConfig
from webgather.crawler.types import JobMode, SelectorKind


class TestParseLimit:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (10, 10),
            ("7", 7),
            (" 3 ", 3),
            (4.0, 4),
            (None, 50),
            ("", 50),
            ("abc", 50),
            (0, 50),
            (-2, 50),
            (2.5, 50),
            (True, 50),
        ],
    )
    def test_fallback_to_default(self, value, expected):
        assert parse_limit(value, 50) == expected


class TestNormalizeSelectors:
    def test_aliases(self):
        kinds = normalize_selectors("Headings, paragraphs, img, URLs, meta-tags")
        assert kinds == {
            SelectorKind.HEADINGS,
            SelectorKind.TEXT,
            SelectorKind.IMAGES,
            SelectorKind.LINKS,
            SelectorKind.META,
        }

    def test_list_input_and_unknown_names(self, caplog):
        kinds = normalize_selectors(["text", "bogus", ""])
        assert kinds == {SelectorKind.TEXT}
        assert "bogus" in caplog.text

    def test_none_is_empty(self):
        assert normalize_selectors(None) == frozenset()


class TestJobConfig:
    def test_site_request(self):
        config = JobConfig.from_request(
            {"mode": "site", "url": " https://a.test/ ", "limit": "3", "selectors": "text,links"}
        )
        assert config.mode == JobMode.SITE
        assert config.url == "https://a.test/"
        assert config.limit == 3
        assert config.max_requests == 3
        assert config.wants(SelectorKind.LINKS)
        assert not config.wants(SelectorKind.META)

    def test_gather_request_budget(self):
        config = JobConfig.from_request({"type": "gather", "topic": "python", "limit": 4})
        assert config.mode == JobMode.GATHER
        assert config.max_requests == 20

    def test_mode_inferred(self):
        assert JobConfig.from_request({"url": "https://a.test/"}).mode == JobMode.SITE
        assert JobConfig.from_request({"topic": "x"}).mode == JobMode.GATHER

    def test_default_limit_applies(self):
        config = JobConfig.from_request({"topic": "x", "limit": "nope"}, default_limit=12)
        assert config.limit == 12

    def test_keywords_accept_list(self):
        config = JobConfig.from_request({"topic": "x", "keywords": ["AI", " ML "]})
        assert config.keywords == ["ai", "ml"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"mode": "site"},
            {"mode": "site", "url": "   "},
            {"mode": "site", "url": "not-a-url"},
            {"mode": "site", "url": "http://[bad"},
            {"mode": "gather"},
            {"mode": "gather", "topic": " ", "keywords": " "},
            {"mode": "teleport", "url": "https://a.test/"},
        ],
    )
    def test_invalid_requests(self, payload):
        with pytest.raises(InvalidConfig):
            JobConfig.from_request(payload)

    def test_invalid_config_is_a_value_error(self):
        with pytest.raises(ValueError):
            JobConfig(mode=JobMode.GATHER, topic="x", limit=0)

    def test_to_dict(self):
        config = JobConfig.from_request({"topic": "x", "selectors": "links,text"})
        assert config.to_dict()["selectors"] == ["links", "text"]


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.retries == 0
        assert config.same_host_only is False
        assert config.headers_for("https://a.test/")["User-Agent"] == config.user_agent

    @pytest.mark.parametrize(
        "field,value",
        [("concurrency", 0), ("timeout_seconds", 0), ("retries", -1), ("max_search_pages", 0)],
    )
    def test_validation(self, field, value):
        with pytest.raises(ValueError):
            EngineConfig(**{field: value})

    def test_from_dict_rejects_bad_types(self):
        with pytest.raises(ValueError):
            EngineConfig.from_dict({"concurrency": "many"})
        with pytest.raises(ValueError):
            EngineConfig.from_dict({"respect_robots": "yes"})

    @pytest.mark.parametrize("suffix", [".json", ".yaml", ".yml"])
    def test_save_then_load(self, tmp_path, suffix):
        original = EngineConfig(concurrency=7, retries=2, same_host_only=True)
        path = tmp_path / "nested" / f"engine{suffix}"

        save_config(original, path)
        loaded = load_config(path)

        assert loaded.to_dict() == original.to_dict()

    def test_load_partial_json_uses_defaults(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"concurrency": 2}), encoding="utf-8")
        loaded = load_config(path)
        assert loaded.concurrency == 2
        assert loaded.default_limit == EngineConfig().default_limit

    def test_empty_yaml_is_defaults(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path).to_dict() == EngineConfig().to_dict()

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(tmp_path / "engine.toml")
        with pytest.raises(ValueError):
            save_config(EngineConfig(), tmp_path / "engine.toml")
