"""
Endpoint resolution for Loggly-style ingestion URLs.

The remote service splits the tag segment on commas, so tags are joined
verbatim and in order: default tags first, then per-call tags.
"""

from collections.abc import Iterable

import httpx

from .errors import ValidationError

# Default Loggly HTTP/S event endpoint
DEFAULT_ENDPOINT = "https://logs-01.loggly.com/inputs"

TAG_SEGMENT = "tag"


def as_tag_list(tags: Iterable[str] | str | None) -> list[str]:
    """Copy tags into a list; a single string is one tag, not its characters."""
    if not tags:
        return []
    if isinstance(tags, str):
        return [tags]
    return list(tags)


def merge_tags(
    default_tags: Iterable[str] | str | None = None,
    tags: Iterable[str] | str | None = None,
) -> list[str]:
    """Concatenate default tags and per-call tags. Duplicates are kept."""
    return as_tag_list(default_tags) + as_tag_list(tags)


def resolve_url(
    token: str,
    default_tags: Iterable[str] | str | None = None,
    tags: Iterable[str] | str | None = None,
    endpoint: str = DEFAULT_ENDPOINT,
) -> str:
    """
    Build the destination URL for a submission.

    Args:
        token: Account token, appended as the last path segment
        default_tags: Client-level tags, placed first
        tags: Per-call tags
        endpoint: Base ingestion URL (without token)

    Returns:
        ``<endpoint>/<token>`` or ``<endpoint>/<token>/tag/<a,b,c>``
    """
    url = f"{endpoint.rstrip('/')}/{token}"

    all_tags = merge_tags(default_tags, tags)
    if all_tags:
        url = f"{url}/{TAG_SEGMENT}/{','.join(all_tags)}"

    return url


def check_url(url: str) -> str:
    """
    Make sure ``url`` can be sent at all.

    Raises:
        ValidationError: if the token or a tag put characters into the URL
            that no HTTP request can carry (control characters, for example)
    """
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ValidationError(f"Invalid destination URL: {e}") from e
    return url
