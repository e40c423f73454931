"""Process-wide name normalizer.

``name_mapper`` converts untagged attribute names into column names and
defaults to ``str.lower``. It may be reassigned at any time, directly or via
``set_name_mapper``; ``default_mapper`` notices the change and starts a
fresh structure cache, so maps built under the old normalizer are never
served.

Libraries should prefer an explicit ``Mapper`` over changing this global,
since applications may replace it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from row_scan.mapping.structure import Mapper

logger = logging.getLogger(__name__)

name_mapper: Callable[[str], str] = str.lower

_mapper: Mapper | None = None
_installed: Callable[[str], str] | None = None
_lock = threading.Lock()


def set_name_mapper(func: Callable[[str], str]) -> None:
    """Install a new process-wide name normalizer."""
    global name_mapper
    with _lock:
        name_mapper = func


def default_mapper() -> Mapper:
    """Mapper built from the current ``name_mapper``."""
    global _mapper, _installed
    with _lock:
        if _mapper is None or _installed is not name_mapper:
            if _mapper is not None:
                logger.debug("Name mapper replaced, discarding cached structure maps")
            _mapper = Mapper(name_mapper)
            _installed = name_mapper
        return _mapper
