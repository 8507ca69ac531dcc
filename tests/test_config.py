from __future__ import annotations

import pytest

from opensubstances.config import Settings
from opensubstances.errors import InvalidArgumentError


def test_defaults_without_environment() -> None:
    settings = Settings.from_env({})
    assert settings == Settings()
    assert settings.log_level == "WARNING"
    assert settings.standard_temperature == pytest.approx(273.15)
    assert settings.standard_pressure == pytest.approx(101.325)
    assert settings.ancestor_fallback is False
    assert settings.always_use_store is False


def test_values_are_read_from_environment() -> None:
    settings = Settings.from_env(
        {
            "OPENSUBSTANCES_LOG_LEVEL": "debug",
            "OPENSUBSTANCES_STANDARD_TEMPERATURE": "298.15",
            "OPENSUBSTANCES_STANDARD_PRESSURE": "100",
            "OPENSUBSTANCES_ANCESTOR_FALLBACK": "yes",
            "OPENSUBSTANCES_ALWAYS_USE_STORE": "1",
        }
    )
    assert settings.log_level == "DEBUG"
    assert settings.standard_temperature == pytest.approx(298.15)
    assert settings.standard_pressure == pytest.approx(100.0)
    assert settings.ancestor_fallback is True
    assert settings.always_use_store is True


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("OPENSUBSTANCES_LOG_LEVEL", "verbose"),
        ("OPENSUBSTANCES_STANDARD_TEMPERATURE", "-4"),
        ("OPENSUBSTANCES_STANDARD_PRESSURE", "high"),
        ("OPENSUBSTANCES_ANCESTOR_FALLBACK", "maybe"),
    ],
)
def test_invalid_values_name_the_variable(name: str, value: str) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        Settings.from_env({name: value})
    assert name in excinfo.value.description
