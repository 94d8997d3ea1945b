"""Tests for about.py getVersionInfo function."""

from __future__ import annotations

import hddgen
from hddgen.build_info import get_build_info, get_build_string
from hddgen.core.utils.about import getVersionInfo


def test_getversioninfo_has_required_keys() -> None:
    info = getVersionInfo()

    required_keys = [
        "hddgen version",
        "Python version",
        "Python platform",
        "build_timestamp",
        "Alloc Config",
        "Log file",
    ]
    for key in required_keys:
        assert key in info, f"Missing key: {key}"
    assert info["hddgen version"] == hddgen.__version__


def test_getversioninfo_values_are_strings() -> None:
    for key, value in getVersionInfo().items():
        assert isinstance(value, str), f"Value for {key} is not a string: {type(value)}"


def test_build_info_falls_back_to_dev() -> None:
    info = get_build_info()
    assert info["build_timestamp"] == "dev"
    assert get_build_string() == "dev | dev"
