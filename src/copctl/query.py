import re
from datetime import date, datetime, time, timezone
from urllib.parse import quote

from copctl.errors import TemplateError
from copctl.model import QueryFilter

COLLECTION_PLACEHOLDER = "{collection}"
# Characters kept verbatim in query values (coordinate lists, timestamps, intervals)
QUERY_SAFE_CHARS = ",:/"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_datetime(value: datetime) -> str:
    """Format as an RFC3339 UTC timestamp truncated to whole seconds, e.g. 2024-01-01T00:00:00Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_datetime(value: str, *, ceil: bool = False) -> datetime:
    """Parse a user supplied date or timestamp into an aware UTC datetime.

    A bare date (YYYY-MM-DD) becomes the first second of that day, or the last
    one when `ceil` is set, so that it acts as an inclusive whole-day bound.
    Anything else must be an ISO 8601 / RFC3339 timestamp and is used as given;
    timestamps without an offset are taken as UTC.

    Args:
        value (str): user input
        ceil (bool, optional): use the end of day for bare dates. Defaults to False.

    Raises:
        ValueError: when the value is neither a date nor a timestamp

    Returns:
        datetime: timezone aware datetime in UTC
    """
    value = value.strip()
    if _DATE_ONLY.match(value):
        day = date.fromisoformat(value)
        bound = time(23, 59, 59) if ceil else time(0, 0, 0)
        return datetime.combine(day, bound, tzinfo=timezone.utc)
    # fromisoformat only accepts the Z suffix from 3.11 onwards
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(
            f"Invalid datetime: '{value}' (expected YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ)"
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _term(name: str, value: object) -> str:
    return f"{name}={quote(str(value), safe=QUERY_SAFE_CHARS)}"


def build_query(params: QueryFilter, include_collections: bool) -> str | None:
    """Build the query string for the search and list endpoints.

    Terms are always emitted in the same order: ids, bbox, datetime, sortby,
    limit, page, then collections when `include_collections` is set. Absent
    fields are left out entirely.

    Args:
        params (QueryFilter): user filters
        include_collections (bool): whether the endpoint accepts a `collections` term

    Returns:
        str | None: the query string without a leading '?', None when there is nothing to send
    """
    terms: list[str] = []
    if params.ids is not None:
        terms.append(_term("ids", params.ids))
    if params.bbox is not None:
        terms.append(_term("bbox", params.bbox))
    if params.start is not None or params.end is not None:
        start = format_datetime(params.start) if params.start is not None else ""
        end = format_datetime(params.end) if params.end is not None else ""
        terms.append(_term("datetime", f"{start}/{end}"))
    if params.sortby is not None:
        terms.append(_term("sortby", params.sortby))
    if params.limit is not None:
        terms.append(_term("limit", params.limit))
    if params.page is not None:
        terms.append(_term("page", params.page))
    if include_collections and params.collections is not None:
        terms.append(_term("collections", params.collections))

    if not terms:
        return None
    return "&".join(terms)


def with_collection(url_template: str, collection_id: str | None) -> str:
    """Expand the `{collection}` placeholder of a templated endpoint.

    Raises:
        TemplateError: when the template has no placeholder or no collection is given
    """
    if COLLECTION_PLACEHOLDER not in url_template:
        raise TemplateError(f"Invalid URL template: '{url_template}' has no {COLLECTION_PLACEHOLDER} placeholder")
    if not collection_id:
        raise TemplateError(f"Missing collection id for URL template '{url_template}'")
    return url_template.replace(COLLECTION_PLACEHOLDER, quote(collection_id, safe=""))


def attach_query(url: str, query: str | None) -> str:
    """Append a query string to a URL, leaving the URL untouched when there is none."""
    if query is None:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
