"""Tests for repograph.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from repograph.config import ConfigError, RepoGraphConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, RepoGraphConfig)
    assert config.root == tmp_path.resolve()
    assert config.graph.max_role_links == 20
    assert config.graph.max_chain_links == 10
    assert config.coupling.min_commit_files == 2
    assert config.coupling.max_commit_files == 20
    assert config.coupling.max_directory_files == 14
    assert config.quality.fallback_maintainability == pytest.approx(50.0)
    assert config.churn.seed is None
    assert config.scan.batch_size == 10
    assert config.analyzers.enabled == []
    assert config.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".repograph.yml"
    config_file.write_text(
        """
graph:
  max_role_links: 5
coupling:
  max_commit_files: 12
  recent_days: "30"
  entry_weight: 2.5
  max_pairs: 40
quality:
  fallback_maintainability: 70
churn:
  seed: 42
scan:
  batch_size: 4
  batch_delay: 0.5
hotspots:
  limit: 3
analyzers:
  enabled: [dependencies, coupling]
  exclude_paths:
    - "generated/"
exclude_paths:
  - "sandbox/"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.graph.max_role_links == 5
    assert config.graph.max_chain_links == 10
    assert config.coupling.max_commit_files == 12
    assert config.coupling.recent_days == 30
    assert config.coupling.entry_weight == pytest.approx(2.5)
    assert config.coupling.max_pairs == 40
    assert config.quality.fallback_maintainability == pytest.approx(70.0)
    assert config.churn.seed == 42
    assert config.scan.batch_size == 4
    assert config.scan.batch_delay == pytest.approx(0.5)
    assert config.hotspots.limit == 3
    assert config.analyzers.enabled == ["dependencies", "coupling"]
    assert config.analyzers.exclude_paths == ["generated/"]
    assert config.exclude_paths == ["sandbox/"]


def test_load_config_accepts_custom_file_name(tmp_path: Path) -> None:
    config_file = tmp_path / "ci-graph.yml"
    config_file.write_text("hotspots:\n  min_complexity: 3\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.hotspots.min_complexity == 3


def test_load_config_ignores_wrongly_typed_values(tmp_path: Path) -> None:
    config_file = tmp_path / ".repograph.yml"
    config_file.write_text(
        "graph:\n  max_chain_links: true\ncoupling: nonsense\nexclude_paths: sandbox/\n",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.graph.max_chain_links == 10
    assert config.coupling.max_pairs == 100
    assert config.exclude_paths == ["sandbox/"]


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".repograph.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.coupling.min_cochanges == 2


@pytest.mark.parametrize(
    "text",
    [
        "graph: [unclosed\n",
        "- just\n- a list\n",
        "coupling:\n  min_commit_files: 30\n",
        "quality:\n  fallback_maintainability: 120\n",
        "scan:\n  batch_size: 0\n",
    ],
)
def test_load_config_rejects_invalid_documents(tmp_path: Path, text: str) -> None:
    config_file = tmp_path / ".repograph.yml"
    config_file.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)
