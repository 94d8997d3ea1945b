from __future__ import annotations

import platform


def getVersionInfo() -> dict:
    """Return version, platform, build and config locations as display strings."""
    retDict = {}

    import hddgen
    from hddgen.build_info import get_build_info
    from hddgen.core.alloc_config import AllocConfig
    from hddgen.core.utils.logging import get_log_file_path

    retDict["hddgen version"] = hddgen.__version__
    retDict["Python version"] = platform.python_version()
    retDict["Python platform"] = platform.platform()
    retDict["System"] = platform.system()
    retDict["Machine"] = platform.machine()

    for key, value in get_build_info().items():
        retDict[key] = value

    retDict["Alloc Config"] = str(AllocConfig.default_config_path())
    log_path = get_log_file_path()
    retDict["Log file"] = str(log_path) if log_path else "N/A (logging not configured)"

    return retDict
