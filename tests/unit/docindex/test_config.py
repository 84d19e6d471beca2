"""
Unit tests for configuration loading.

Tests for:
- Defaults
- YAML file loading
- Environment overrides
- Validation
"""

import logging
from pathlib import Path

import pytest

from docindex.core.config import DocIndexConfig
from docindex.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch, tmp_path):
    """Run from an empty directory so a developer's .env is never loaded."""
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = DocIndexConfig()

        assert config.chunk_size == 1000
        assert config.chunk_overlap == 100
        assert config.top_k == 5
        assert config.embed_provider == "ollama"
        assert config.store_backend == "memory"
        assert config.embedding_dim is None

    def test_defaults_are_valid(self):
        DocIndexConfig().validate()

    def test_chunking_policy(self):
        policy = DocIndexConfig(chunk_size=500, chunk_overlap=50).chunking_policy()

        assert policy.chunk_size == 500
        assert policy.overlap == 50

    def test_log_level_number(self):
        assert DocIndexConfig(log_level="debug").log_level_number == logging.DEBUG


class TestFromFile:
    """Tests for DocIndexConfig.from_file."""

    def test_load_sections(self, tmp_path):
        path = tmp_path / "docindex.yaml"
        path.write_text(
            "chunking:\n"
            "  chunk_size: 400\n"
            "  overlap: 40\n"
            "embedding:\n"
            "  provider: hashing\n"
            "  hashing_dimension: 128\n"
            "store:\n"
            "  backend: sqlite\n"
            "  sqlite_path: data/index.db\n"
            "  dimension: 128\n"
            "retrieval:\n"
            "  top_k: 8\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  json: true\n",
            encoding="utf-8",
        )

        config = DocIndexConfig.from_file(path)

        assert config.chunk_size == 400
        assert config.chunk_overlap == 40
        assert config.embed_provider == "hashing"
        assert config.hashing_dimension == 128
        assert config.store_backend == "sqlite"
        assert config.sqlite_path == "data/index.db"
        assert config.embedding_dim == 128
        assert config.top_k == 8
        assert config.log_level == "DEBUG"
        assert config.log_json is True

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert DocIndexConfig.from_file(path) == DocIndexConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            DocIndexConfig.from_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("chunking: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            DocIndexConfig.from_file(path)

    def test_unknown_key_ignored(self, tmp_path, caplog):
        path = tmp_path / "extra.yaml"
        path.write_text("chunking:\n  strategy: sentences\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="docindex.core.config"):
            config = DocIndexConfig.from_file(path)

        assert config.chunk_size == 1000
        assert "chunking.strategy" in caplog.text

    def test_invalid_values_rejected(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("chunking:\n  chunk_size: 100\n  overlap: 100\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="chunking"):
            DocIndexConfig.from_file(path)

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "docindex.yaml"
        path.write_text("retrieval:\n  top_k: 8\n", encoding="utf-8")
        monkeypatch.setenv("DOCINDEX_TOP_K", "2")

        assert DocIndexConfig.from_file(path).top_k == 2
        assert DocIndexConfig.from_file(path, apply_env=False).top_k == 8

    def test_example_config_is_valid(self):
        path = Path(__file__).resolve().parents[3] / "config" / "docindex.example.yaml"

        config = DocIndexConfig.from_file(path, apply_env=False)

        assert config.store_backend == "sqlite"
        assert config.embedding_dim is None

    @pytest.mark.parametrize(
        "content,source",
        [
            ("chunking:\n  chunk_size: big\n", "chunking.chunk_size"),
            ("chunking:\n  chunk_size: 2.5\n", "chunking.chunk_size"),
            ("chunking:\n  overlap: true\n", "chunking.overlap"),
            ("retrieval:\n  top_k: five\n", "retrieval.top_k"),
            ("embedding:\n  timeout_seconds: soon\n", "embedding.timeout_seconds"),
            ("store:\n  sqlite_path: [a, b]\n", "store.sqlite_path"),
        ],
    )
    def test_wrong_typed_value(self, tmp_path, content, source):
        path = tmp_path / "typed.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError, match=f"Invalid value for {source}"):
            DocIndexConfig.from_file(path, apply_env=False)

    def test_numeric_log_level_rejected(self, tmp_path):
        path = tmp_path / "level.yaml"
        path.write_text("logging:\n  level: 10\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="log level"):
            DocIndexConfig.from_file(path, apply_env=False)

    def test_quoted_values_converted(self, tmp_path):
        path = tmp_path / "quoted.yaml"
        path.write_text(
            "chunking:\n"
            "  chunk_size: '400'\n"
            "store:\n"
            "  dimension: null\n"
            "logging:\n"
            "  json: 'yes'\n",
            encoding="utf-8",
        )

        config = DocIndexConfig.from_file(path, apply_env=False)

        assert config.chunk_size == 400
        assert config.embedding_dim is None
        assert config.log_json is True

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            DocIndexConfig.from_dict({"chunking": [1, 2]})


class TestFromEnv:
    """Tests for DocIndexConfig.from_env."""

    def test_no_variables_gives_defaults(self):
        assert DocIndexConfig.from_env() == DocIndexConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DOCINDEX_CHUNK_SIZE", "300")
        monkeypatch.setenv("DOCINDEX_CHUNK_OVERLAP", "30")
        monkeypatch.setenv("DOCINDEX_EMBED_PROVIDER", "hashing")
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434")
        monkeypatch.setenv("DOCINDEX_EMBED_TIMEOUT", "2.5")
        monkeypatch.setenv("DOCINDEX_EMBEDDING_DIM", "768")
        monkeypatch.setenv("DOCINDEX_LOG_JSON", "yes")

        config = DocIndexConfig.from_env()

        assert config.chunk_size == 300
        assert config.chunk_overlap == 30
        assert config.embed_provider == "hashing"
        assert config.ollama_base_url == "http://gpu-box:11434"
        assert config.embed_timeout_seconds == 2.5
        assert config.embedding_dim == 768
        assert config.log_json is True

    def test_blank_variable_ignored(self, monkeypatch):
        monkeypatch.setenv("DOCINDEX_TOP_K", "  ")
        assert DocIndexConfig.from_env().top_k == 5

    def test_non_integer_value(self, monkeypatch):
        monkeypatch.setenv("DOCINDEX_CHUNK_SIZE", "large")

        with pytest.raises(ConfigError, match="DOCINDEX_CHUNK_SIZE"):
            DocIndexConfig.from_env()

    def test_dotenv_file_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("DOCINDEX_PREVIEW_LENGTH=64\n", encoding="utf-8")
        # registers the variable so teardown removes what load_dotenv sets
        monkeypatch.setenv("DOCINDEX_PREVIEW_LENGTH", "0")
        monkeypatch.delenv("DOCINDEX_PREVIEW_LENGTH")

        assert DocIndexConfig.from_env().preview_length == 64

    def test_shell_wins_over_dotenv(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("DOCINDEX_TOP_K=9\n", encoding="utf-8")
        monkeypatch.setenv("DOCINDEX_TOP_K", "4")

        assert DocIndexConfig.from_env().top_k == 4


class TestValidate:
    """Tests for DocIndexConfig.validate."""

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"chunk_size": 0}, "chunking"),
            ({"chunk_overlap": -1}, "chunking"),
            ({"top_k": 0}, "top_k"),
            ({"preview_length": -1}, "preview_length"),
            ({"embed_provider": "openai"}, "embed provider"),
            ({"store_backend": "mongodb"}, "store backend"),
            ({"embed_timeout_seconds": 0}, "embed_timeout_seconds"),
            ({"hashing_dimension": 0}, "hashing_dimension"),
            ({"embedding_dim": 0}, "embedding_dim"),
            ({"log_level": "LOUD"}, "log level"),
        ],
    )
    def test_invalid(self, overrides, message):
        with pytest.raises(ConfigError, match=message):
            DocIndexConfig(**overrides).validate()
