"""
Query strings for search and autocomplete requests
"""
import re
from typing import Optional
from yarl import URL

# Highest SemVer level, so that no package is hidden while polling
POLL_SEMVER_LEVEL = "2.0.0"

# One to four numeric parts, then optional release labels and build metadata
_IDENTIFIER = r"[0-9A-Za-z-]+"
VERSION_PATTERN = re.compile(
    rf"[0-9]+(\.[0-9]+){{0,3}}"
    rf"(-{_IDENTIFIER}(\.{_IDENTIFIER})*)?"
    rf"(\+{_IDENTIFIER}(\.{_IDENTIFIER})*)?"
)


def is_valid_version(value: str) -> bool:
    """Check whether a string is a package version such as ``2.0.0`` or ``1.0.0-beta.2``"""
    return VERSION_PATTERN.fullmatch(value) is not None


def build_autocomplete_query(
    base_query: str,
    include_prerelease: Optional[bool] = None,
    sem_ver_level: Optional[str] = None
) -> str:
    """
    Add the prerelease and SemVer level filters to an autocomplete query

    An unparseable ``sem_ver_level`` is left out rather than rejected.

    Args:
        base_query: Query string such as ``take=30&q=foo``
        include_prerelease: Include prerelease versions, false when unset
        sem_ver_level: SemVer level filter such as ``2.0.0``

    Returns:
        The query string without a leading ``?``, or an empty string
    """
    query = base_query
    query += f"&prerelease={'true' if include_prerelease else 'false'}"

    if sem_ver_level and is_valid_version(sem_ver_level):
        query += f"&semVerLevel={sem_ver_level}"

    return query.lstrip('&')


def build_poll_query_url(poll_url: str, package_id: str, version: str) -> str:
    """
    Add the exact id and version filter to a replica query URL

    Filtering rules are bypassed and the SemVer level is pinned so that
    listing state or version ranges do not hide the package being checked.
    """
    url = URL(poll_url).update_query({
        "q": f"packageid:{package_id} and version:{version}",
        "ignoreFilter": "true",
        "semVerLevel": POLL_SEMVER_LEVEL,
    })
    return str(url)
