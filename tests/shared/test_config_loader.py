"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

from packages.relay_shared.config import load_config, load_settings, resolve_component_settings


class _ExampleServiceSettings(BaseModel):
    timeout_seconds: float = 30.0
    enabled: bool = False


def test_load_settings_uses_relay_precedence_cascade(tmp_path: Path) -> None:
    """Init params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "relay.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "  service: relay-worker",
                "components:",
                "  service:",
                "    example:",
                "      timeout_seconds: 7",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        environ={
            "RELAY_LOGGING__LEVEL": "ERROR",
            "RELAY_COMPONENTS__SERVICE__EXAMPLE__TIMEOUT_SECONDS": "9",
            "RELAY_COMPONENTS__SERVICE__EXAMPLE__ENABLED": "true",
            "OTHER_IGNORED": "1",
        },
        config_path=config_file,
    )
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleServiceSettings,
    )

    assert settings.logging.level == "DEBUG"
    assert settings.logging.service == "relay-worker"
    assert example.timeout_seconds == 9
    assert example.enabled is True


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "relay.yaml", environ={})
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleServiceSettings,
    )

    assert settings.logging.service == "relay"
    assert settings.logging.level == "INFO"
    assert settings.logging.json_output is True
    assert example.timeout_seconds == 30.0


def test_load_config_coerces_environment_scalars(tmp_path: Path) -> None:
    merged = load_config(
        environ={
            "RELAY_A__FLAG": "false",
            "RELAY_A__COUNT": "3",
            "RELAY_A__RATIO": "0.25",
            "RELAY_A__NOTHING": "none",
            "RELAY_A__ITEMS": '["x", "y"]',
            "RELAY_A__TEXT": "plain",
        },
        config_path=tmp_path / "absent.yaml",
    )

    assert merged == {
        "a": {
            "flag": False,
            "count": 3,
            "ratio": 0.25,
            "nothing": None,
            "items": ["x", "y"],
            "text": "plain",
        }
    }


def test_load_settings_rejects_non_mapping_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "relay.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="top-level mapping"):
        load_settings(config_path=config_file, environ={})


def test_flat_component_keys_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="components.service.example"):
        load_settings(
            cli_params={"components": {"service_example": {"enabled": True}}},
            environ={},
            config_path=tmp_path / "relay.yaml",
        )


def test_config_file_env_selects_yaml_file_without_becoming_a_setting(
    tmp_path: Path,
) -> None:
    """RELAY_CONFIG_FILE points at the YAML layer when no path is passed."""
    config_file = tmp_path / "elsewhere.yaml"
    config_file.write_text("logging:\n  environment: staging\n", encoding="utf-8")

    merged = load_config(environ={"RELAY_CONFIG_FILE": str(config_file)})

    assert merged == {"logging": {"environment": "staging"}}
