"""
Doc command implementation.

Opens the documentation of the toolchain for the current directory:
the standard library page by default, the documentation index with --all.
"""

import logging

from multirustkit.config.root import DOC_INDEX_PAGE, DOC_STD_PAGE
from multirustkit.core.directory import current_dir

logger = logging.getLogger(__name__)


def doc_page(args) -> str:
    return DOC_INDEX_PAGE if args.all else DOC_STD_PAGE


def run(args, cfg) -> int:
    cfg.open_docs_for_dir(current_dir(), doc_page(args))
    return 0
