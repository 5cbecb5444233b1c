"""Configuration root for multirustkit."""

from multirustkit.config.root import (
    DOC_INDEX_PAGE,
    DOC_STD_PAGE,
    Cfg,
    ResolutionSource,
)

__all__ = ["Cfg", "ResolutionSource", "DOC_INDEX_PAGE", "DOC_STD_PAGE"]
