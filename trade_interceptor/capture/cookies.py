"""Conversion of cookie header strings into Playwright cookie records."""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def parse_cookie_string(
    cookies: Optional[str],
    domain: str,
    path: str = "/",
) -> List[Dict[str, Any]]:
    """Parse a ``name=value; name2=value2`` string into cookie dicts.

    Each cookie is scoped to ``domain`` and ``path`` so it can be passed
    straight to ``BrowserContext.add_cookies``. Segments without a name are
    skipped; values may themselves contain ``=``.

    Args:
        cookies: Semicolon separated cookie string
        domain: Cookie domain, e.g. ``.pathofexile.com``
        path: Cookie path

    Returns:
        List of Playwright cookie dicts (empty when nothing usable was given)
    """
    if not cookies:
        return []

    records = []
    for segment in cookies.split(';'):
        segment = segment.strip()
        if not segment:
            continue

        name, separator, value = segment.partition('=')
        name = name.strip()
        if not name or not separator:
            logger.debug(f"Skipping malformed cookie segment: {name or '<empty>'}")
            continue

        records.append({
            'name': name,
            'value': value.strip(),
            'domain': domain,
            'path': path,
        })

    return records
