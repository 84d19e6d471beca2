"""
Configuration loader for the document index.

Values come from three layers, later layers winning:
1. Defaults defined on DocIndexConfig
2. An optional YAML file (sections: chunking, embedding, store, retrieval, logging)
3. Environment variables (a local .env file is loaded first; the shell wins)
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from dotenv import find_dotenv, load_dotenv

from ..contracts.retrieval_contracts import ChunkingPolicy
from .exceptions import ConfigError


logger = logging.getLogger(__name__)

EMBED_PROVIDERS = ("ollama", "hashing")
STORE_BACKENDS = ("memory", "sqlite")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "t", "yes", "y"}


def _to_int(value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    return float(value)


def _to_str(value: Any) -> str:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise TypeError(f"not a scalar string: {value!r}")
    return str(value)


# env var -> (config field, converter)
ENV_OVERRIDES: Dict[str, tuple] = {
    "DOCINDEX_CHUNK_SIZE": ("chunk_size", _to_int),
    "DOCINDEX_CHUNK_OVERLAP": ("chunk_overlap", _to_int),
    "DOCINDEX_TOP_K": ("top_k", _to_int),
    "DOCINDEX_PREVIEW_LENGTH": ("preview_length", _to_int),
    "DOCINDEX_EMBED_PROVIDER": ("embed_provider", _to_str),
    "OLLAMA_BASE_URL": ("ollama_base_url", _to_str),
    "OLLAMA_EMBED_MODEL": ("embed_model", _to_str),
    "DOCINDEX_EMBED_TIMEOUT": ("embed_timeout_seconds", _to_float),
    "DOCINDEX_HASHING_DIM": ("hashing_dimension", _to_int),
    "DOCINDEX_STORE_BACKEND": ("store_backend", _to_str),
    "DOCINDEX_SQLITE_PATH": ("sqlite_path", _to_str),
    "DOCINDEX_EMBEDDING_DIM": ("embedding_dim", _to_int),
    "DOCINDEX_LOG_LEVEL": ("log_level", _to_str),
    "DOCINDEX_LOG_JSON": ("log_json", _to_bool),
}

# config field -> converter, shared by file values and env overrides
FIELD_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    field_name: convert for field_name, convert in ENV_OVERRIDES.values()
}

OPTIONAL_FIELDS = ("embedding_dim",)

# yaml section -> {yaml key: config field}
FILE_SECTIONS: Dict[str, Dict[str, str]] = {
    "chunking": {
        "chunk_size": "chunk_size",
        "overlap": "chunk_overlap",
    },
    "embedding": {
        "provider": "embed_provider",
        "base_url": "ollama_base_url",
        "model": "embed_model",
        "timeout_seconds": "embed_timeout_seconds",
        "hashing_dimension": "hashing_dimension",
    },
    "store": {
        "backend": "store_backend",
        "sqlite_path": "sqlite_path",
        "dimension": "embedding_dim",
    },
    "retrieval": {
        "top_k": "top_k",
        "preview_length": "preview_length",
    },
    "logging": {
        "level": "log_level",
        "json": "log_json",
    },
}


@dataclass
class DocIndexConfig:
    """
    Settings for chunking, embedding, storage and retrieval.

    Attributes:
        chunk_size: Chunk window size in characters
        chunk_overlap: Characters shared by consecutive chunks
        top_k: Default number of hits returned by a query
        preview_length: Characters of source text kept as document preview
        embed_provider: Embedding provider name ('ollama' or 'hashing')
        ollama_base_url: Base URL of the Ollama server
        embed_model: Ollama embedding model name
        embed_timeout_seconds: HTTP timeout for a single embedding request
        hashing_dimension: Vector length of the hashing provider
        store_backend: Store backend name ('memory' or 'sqlite')
        sqlite_path: Database file for the sqlite backend
        embedding_dim: Fixed store dimension (None: set by the first write)
        log_level: Logging level name
        log_json: Emit JSON-structured log lines
    """
    chunk_size: int = 1000
    chunk_overlap: int = 100
    top_k: int = 5
    preview_length: int = 200
    embed_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    embed_model: str = "nomic-embed-text"
    embed_timeout_seconds: float = 60.0
    hashing_dimension: int = 256
    store_backend: str = "memory"
    sqlite_path: str = "local/docindex/docindex.db"
    embedding_dim: Optional[int] = None
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, base: Optional["DocIndexConfig"] = None) -> "DocIndexConfig":
        """
        Create config from environment variables.

        Loads the nearest .env file at or above the working directory. Variables
        already set in the environment take precedence over the file.

        Args:
            base: Config whose values are overridden (defaults if omitted)
        """
        load_dotenv(find_dotenv(usecwd=True), override=False)

        config = base or cls()
        overrides: Dict[str, Any] = {}
        for env_name, (field_name, convert) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None or raw.strip() == "":
                continue
            overrides[field_name] = _convert(env_name, raw, convert)

        if overrides:
            logger.debug(f"Applying environment overrides: {sorted(overrides)}")
            config = replace(config, **overrides)

        config.validate()
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path], apply_env: bool = True) -> "DocIndexConfig":
        """
        Load config from a YAML file.

        Args:
            path: Path to the YAML file
            apply_env: Whether environment variables override file values

        Raises:
            ConfigError: If the file is missing, unparsable or has bad values
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        logger.info(f"Loading config from: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        config = cls.from_dict(data)
        if apply_env:
            return cls.from_env(base=config)

        config.validate()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocIndexConfig":
        """Create from a nested dictionary in the YAML file layout."""
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for section, mapping in FILE_SECTIONS.items():
            section_data = data.get(section) or {}
            if not isinstance(section_data, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping")
            for key, value in section_data.items():
                field_name = mapping.get(key)
                if field_name is None or field_name not in known:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")
                    continue
                if value is None and field_name in OPTIONAL_FIELDS:
                    values[field_name] = None
                    continue
                values[field_name] = _convert(
                    f"{section}.{key}", value, FIELD_CONVERTERS[field_name]
                )

        return cls(**values)

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigError: If any value is invalid
        """
        try:
            self.chunking_policy().validate()
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid chunking config: {e}") from e

        if self.top_k <= 0:
            raise ConfigError(f"top_k must be positive, got {self.top_k}")
        if self.preview_length < 0:
            raise ConfigError(f"preview_length must be non-negative, got {self.preview_length}")
        if self.embed_provider not in EMBED_PROVIDERS:
            raise ConfigError(
                f"Unknown embed provider: {self.embed_provider}. "
                f"Supported: {', '.join(EMBED_PROVIDERS)}"
            )
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigError(
                f"Unknown store backend: {self.store_backend}. "
                f"Supported: {', '.join(STORE_BACKENDS)}"
            )
        if self.embed_timeout_seconds <= 0:
            raise ConfigError("embed_timeout_seconds must be positive")
        if self.hashing_dimension <= 0:
            raise ConfigError("hashing_dimension must be positive")
        if self.embedding_dim is not None and self.embedding_dim <= 0:
            raise ConfigError("embedding_dim must be positive when set")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigError(f"Unknown log level: {self.log_level}")

    def chunking_policy(self) -> ChunkingPolicy:
        """Chunking policy described by this config."""
        return ChunkingPolicy(chunk_size=self.chunk_size, overlap=self.chunk_overlap)

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(str(self.log_level).upper())


def _convert(source: str, raw: Any, convert: Callable[[Any], Any]) -> Any:
    value = raw.strip() if isinstance(raw, str) else raw
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {source}: {raw!r}") from e
