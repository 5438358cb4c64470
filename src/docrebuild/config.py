"""Configuration loading for docrebuild."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from docrebuild.cache_store import DEFAULT_CACHE_PATH
from docrebuild.exceptions import ConfigurationError
from docrebuild.poller import DEFAULT_API_BASE_URL, normalize_source_url
from docrebuild.webhook import DEFAULT_CONTENT_EXTENSIONS

DEFAULT_CONFIG_FILE = "docrebuild.yaml"
DOC_CONFIG_FILE = "doc-config.yaml"

CACHE_PATH_ENV = "DOCREBUILD_CACHE_PATH"
TOKEN_ENV = "GITHUB_TOKEN"


@dataclass
class SourceConfig:
    """A tracked source as configured."""

    url: str
    alias: str | None = None

    @property
    def label(self) -> str:
        """Name used in log output."""
        return self.alias or self.url


@dataclass
class DocRebuildConfig:
    """docrebuild configuration.

    Sources come from three places, in this order: the ``sources`` list,
    ``build.input.githubRepositories`` of the site config, and every
    ``repository`` entry in the hierarchy of the doc-config files.
    """

    sources: list[SourceConfig] = field(default_factory=list)
    cache_path: str = DEFAULT_CACHE_PATH
    max_interval_hours: float = 12.0
    content_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_CONTENT_EXTENSIONS))
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 10.0
    max_workers: int = 8
    repo_path: str = "."
    site_config: str | None = None
    doc_configs: list[str] = field(default_factory=list)
    scan_sections: str | None = None
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path) -> DocRebuildConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Directory that relative paths are resolved against.

        Returns:
            Parsed configuration object (sources from site files not yet merged).

        Raises:
            ConfigurationError: If a value has the wrong type.
        """
        sources = [_parse_source(item) for item in _get_list(data, "sources")]

        content_extensions = _get_list(data, "content_extensions", list(DEFAULT_CONTENT_EXTENSIONS))
        if not content_extensions or not all(isinstance(e, str) and e for e in content_extensions):
            raise ConfigurationError("content_extensions must be a non-empty list of strings")

        doc_configs = _get_list(data, "doc_configs")
        if not all(isinstance(p, str) for p in doc_configs):
            raise ConfigurationError("doc_configs must be a list of paths")

        max_interval_hours = _get_number(data, "max_interval_hours", 12.0)
        request_timeout = _get_number(data, "request_timeout", 10.0)
        max_workers = data.get("max_workers", 8)
        if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
            raise ConfigurationError("max_workers must be a positive integer")

        return cls(
            sources=sources,
            cache_path=_get_str(data, "cache_path", DEFAULT_CACHE_PATH),
            max_interval_hours=max_interval_hours,
            content_extensions=content_extensions,
            api_base_url=_get_str(data, "api_base_url", DEFAULT_API_BASE_URL),
            request_timeout=request_timeout,
            max_workers=max_workers,
            repo_path=_get_str(data, "repo_path", "."),
            site_config=_get_optional_str(data, "site_config"),
            doc_configs=doc_configs,
            scan_sections=_get_optional_str(data, "scan_sections"),
            root_path=root_path,
        )

    @property
    def source_urls(self) -> list[str]:
        """Configured source URLs, in order."""
        return [s.url for s in self.sources]

    @property
    def max_interval(self) -> timedelta:
        """Longest time allowed without a rebuild."""
        return timedelta(hours=self.max_interval_hours)

    def get_cache_path(self) -> Path:
        """Get absolute cache file path (DOCREBUILD_CACHE_PATH overrides)."""
        override = os.environ.get(CACHE_PATH_ENV)
        return self.root_path / (override or self.cache_path)

    def get_repo_path(self) -> Path:
        """Get absolute path of the site's own repository."""
        return self.root_path / self.repo_path

    def get_github_token(self) -> str:
        """Get GitHub token from environment or gh CLI."""
        token = os.environ.get(TOKEN_ENV)
        if token:
            return token
        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                check=True,
            )
            return result.stdout.strip()
        except (subprocess.CalledProcessError, FileNotFoundError):
            return ""

    def add_sources(self, sources: list[SourceConfig]) -> None:
        """Append sources, skipping URLs that are already configured."""
        seen = {normalize_source_url(s.url) for s in self.sources}
        for source in sources:
            key = normalize_source_url(source.url)
            if key in seen:
                continue
            seen.add(key)
            self.sources.append(source)


def _get_list(data: dict[str, Any], key: str, default: list | None = None) -> list:
    value = data.get(key)
    if value is None:
        return list(default) if default is not None else []
    if not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list, got {type(value).__name__}")
    return value


def _get_str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _get_optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _get_number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if not isinstance(value, int | float) or isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive number")
    return float(value)


def _parse_source(item: Any) -> SourceConfig:
    if isinstance(item, str):
        return SourceConfig(url=item)
    if isinstance(item, dict) and isinstance(item.get("url"), str):
        alias = item.get("alias")
        return SourceConfig(url=item["url"], alias=alias if isinstance(alias, str) else None)
    raise ConfigurationError(f"Invalid source entry: {item!r}")


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def extract_repositories(hierarchy: Any) -> list[SourceConfig]:
    """Collect ``repository`` entries from a doc-config hierarchy.

    Walks ``children`` recursively, depth first, keeping document order.

    Args:
        hierarchy: The ``hierarchy`` list of a doc-config file.

    Returns:
        One SourceConfig per item with a repository.
    """
    repos: list[SourceConfig] = []
    if not isinstance(hierarchy, list):
        return repos

    for item in hierarchy:
        if not isinstance(item, dict):
            continue
        repository = item.get("repository")
        if isinstance(repository, str) and repository:
            alias = item.get("alias")
            if not isinstance(alias, str):
                alias = None
            repos.append(SourceConfig(url=repository, alias=alias))
        repos.extend(extract_repositories(item.get("children")))
    return repos


def discover_sources(config: DocRebuildConfig) -> list[SourceConfig]:
    """Find tracked sources declared in the site's own config files.

    Missing files are skipped.

    Args:
        config: Configuration naming the files to scan.

    Returns:
        Sources in discovery order (may contain duplicates).

    Raises:
        ConfigurationError: If a file exists but is not valid YAML.
    """
    found: list[SourceConfig] = []

    if config.site_config:
        site_path = config.root_path / config.site_config
        if site_path.exists():
            data = _read_yaml(site_path)
            repos = _dig(data, "build", "input", "githubRepositories")
            if isinstance(repos, list):
                for item in repos:
                    if isinstance(item, str) or (isinstance(item, dict) and "url" in item):
                        found.append(_parse_source(item))

    doc_paths = [config.root_path / p for p in config.doc_configs]
    if config.scan_sections:
        sections_dir = config.root_path / config.scan_sections
        if sections_dir.is_dir():
            doc_paths.extend(sorted(sections_dir.glob(f"*/{DOC_CONFIG_FILE}")))

    for doc_path in doc_paths:
        if not doc_path.exists():
            continue
        data = _read_yaml(doc_path)
        if isinstance(data, dict):
            found.extend(extract_repositories(data.get("hierarchy")))

    return found


def load_config(config_path: Path | str) -> DocRebuildConfig:
    """Load docrebuild configuration from a YAML file.

    Args:
        config_path: Path to docrebuild.yaml file.

    Returns:
        Parsed configuration with discovered sources merged in.

    Raises:
        ConfigurationError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    data = _read_yaml(config_path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    config = DocRebuildConfig.from_dict(data, config_path.parent)
    config.add_sources(discover_sources(config))
    return config


def find_config(start_path: Path | str | None = None) -> Path:
    """Find docrebuild.yaml by walking up directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to docrebuild.yaml file.

    Raises:
        ConfigurationError: If no config file is found.
    """
    start = Path.cwd() if start_path is None else Path(start_path)
    current = start.resolve()

    while True:
        candidate = current / DEFAULT_CONFIG_FILE
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    raise ConfigurationError(f"No {DEFAULT_CONFIG_FILE} found in {start} or its parents")
