from __future__ import annotations

import random
import string
import time
from typing import Iterable

_BASE36 = string.digits + string.ascii_lowercase


def short_id(length: int = 6) -> str:
    """Random lowercase base-36 token, used inside converted file names.

    Example:
        >>> len(short_id())
        6
    """
    return "".join(random.choice(_BASE36) for _ in range(length))


def new_item_id(existing: Iterable[str] = ()) -> str:
    """Generates a catalog item id of the form "<epoch-ms>-<base36>".

    Ids are retried until they do not collide with any id in `existing`,
    so two items created within the same millisecond still get distinct ids.

    Args:
        existing: Ids already present in the catalog

    Returns:
        New unique id string, e.g. "1718000000000-k3j9x2a"
    """
    taken = set(existing)
    while True:
        candidate = f"{int(time.time() * 1000)}-{short_id(7)}"
        if candidate not in taken:
            return candidate
