from __future__ import annotations

from typing import Dict


def get_build_info() -> Dict[str, str]:
    """
    Return build metadata generated at packaging time.

    Falls back to "dev" values when the generated ``hddgen._build_info``
    module is missing (editable installs, source checkouts).
    """
    _build_dict = {
        "build_timestamp": "dev",
        "build_git_status": "dev",
    }

    try:
        from hddgen import _build_info  # generated at build time
    except ImportError:
        return _build_dict

    _build_dict["build_timestamp"] = getattr(_build_info, "BUILD_TIMESTAMP", "unknown")
    _build_dict["build_git_status"] = getattr(_build_info, "BUILD_GIT_STATUS", "unknown")
    return _build_dict


def get_build_string() -> str:
    info = get_build_info()
    return f"{info['build_timestamp']} | {info['build_git_status']}"
