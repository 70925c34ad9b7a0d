from __future__ import annotations

import pytest

from nestrun.errors import ConfigurationError, InvalidGeometryError
from nestrun.types import Geometry, ResolvedBinary, signal_exit_code


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("800x600", Geometry(800, 600)), (" 1024X768 ", Geometry(1024, 768))],
)
def test_geometry_parse(raw: str, expected: Geometry) -> None:
    assert Geometry.parse(raw) == expected


@pytest.mark.parametrize("raw", ["800", "800x", "x600", "0x600", "800x-1", "big"])
def test_geometry_parse_rejects_malformed_values(raw: str) -> None:
    with pytest.raises(InvalidGeometryError):
        Geometry.parse(raw)


def test_geometry_error_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        Geometry(0, 10)


def test_geometry_renders_as_screen_argument() -> None:
    assert str(Geometry(800, 600)) == "800x600"


def test_resolved_binary_not_found_is_a_value() -> None:
    missing = ResolvedBinary("Xephyr", None)
    assert missing.found is False


def test_signal_exit_code_follows_shell_convention() -> None:
    assert signal_exit_code(2) == 130
