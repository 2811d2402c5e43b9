"""Unit tests for configuration models and the YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.support import Place
from triggersearch.config import CONFIG_PATH_ENV, ConfigLoadError, TriggerSearchConfig, YAMLConfigLoader, load_config
from triggersearch.exceptions import ConfigurationError

_YAML = """\
name: places
type: sql
database_url: sqlite:///places.db
trigger_creation_strategy: drop-create
update_delay_seconds: 0.25
batch_size_for_updates: 10
watched_entities:
  - entity: tests.support:Place
    capture_table: place_updates
    source_table: place
    ids:
      - capture_column: placefk
        source_column: id
"""


def test_defaults() -> None:
    cfg = TriggerSearchConfig()
    assert cfg.name == "default"
    assert cfg.type == "sql"
    assert cfg.trigger_creation_strategy == "create"
    assert cfg.update_delay_seconds == 0.5
    assert cfg.batch_size_for_updates == 5
    assert cfg.batch_size_for_update_queries == 50
    assert cfg.watched() == []


def test_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "triggersearch.yaml"
    path.write_text(_YAML, encoding="utf-8")

    cfg = load_config(path)

    assert cfg.name == "places"
    assert cfg.trigger_creation_strategy == "drop-create"
    assert cfg.batch_size_for_updates == 10
    (watched,) = cfg.watched()
    assert watched.entity == "tests.support:Place"
    assert watched.id_columns[0].capture_column == "placefk"
    assert watched.key_column == "updateid"


def test_overrides_win_over_yaml(tmp_path: Path) -> None:
    path = tmp_path / "triggersearch.yaml"
    path.write_text(_YAML, encoding="utf-8")
    cfg = load_config(path, overrides={"name": "override"})
    assert cfg.name == "override"


def test_environment_fills_gaps(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TRIGGERSEARCH_BATCH_SIZE_FOR_UPDATES", "9")
    monkeypatch.chdir(tmp_path)
    cfg = load_config()
    assert cfg.batch_size_for_updates == 9


def test_env_path_has_priority(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / "env.yaml"
    env_file.write_text("name: from-env\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_PATH_ENV, str(env_file))
    assert YAMLConfigLoader.resolve_path("cli.yaml") == env_file
    assert load_config().name == "from-env"


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "absent.yaml").name == "default"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("name: [unclosed\n", "Invalid YAML"),
        ("- a\n- b\n", "mapping"),
    ],
)
def test_bad_yaml(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "triggersearch.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigLoadError, match=message):
        load_config(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"type": "elasticsearch"},
        {"trigger_creation_strategy": "always"},
        {"update_delay_seconds": 0},
        {"batch_size_for_updates": 0},
        {"name": "  "},
    ],
)
def test_invalid_values_raise_configuration_error(tmp_path: Path, overrides: dict) -> None:
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "absent.yaml", overrides=overrides)


def test_watched_entity_config_resolves_entity() -> None:
    from triggersearch.events import build_event_models

    cfg = TriggerSearchConfig(
        watched_entities=[
            {
                "entity": "tests.support:Place",
                "capture_table": "place_updates",
                "source_table": "place",
                "ids": [{"capture_column": "placefk", "source_column": "id"}],
            }
        ]
    )
    (info,) = build_event_models(cfg.watched())
    assert info.entity_type is Place
