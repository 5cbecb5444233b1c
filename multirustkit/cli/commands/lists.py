"""
list-overrides and list-toolchains command implementations.
"""

from multirustkit.cli.utils import safe_print


def run_list_overrides(args, cfg) -> int:
    overrides = cfg.override_db.list()
    if not overrides:
        print("no overrides")
        return 0
    for entry in overrides:
        safe_print(str(entry))
    return 0


def run_list_toolchains(args, cfg) -> int:
    toolchains = cfg.list_toolchains()
    if not toolchains:
        print("no installed toolchains")
        return 0
    for name in toolchains:
        safe_print(name)
    return 0
