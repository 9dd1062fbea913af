import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Annotated, Literal

import requests
import typer
from dotenv import load_dotenv

from copctl.utils import setup_logging

load_dotenv()
app = typer.Typer(
    name="copernicus",
    help="Search and download imagery from the Copernicus Data Space catalogue.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
context = {}
log = logging.getLogger(__name__)

IdsOption = Annotated[str | None, typer.Option("--ids", help="Comma separated product ids to search for")]
BBoxOption = Annotated[
    str | None, typer.Option("--bbox", help="Bounding box to query by: min_lon,min_lat,max_lon,max_lat")
]
FromOption = Annotated[
    str | None, typer.Option("--from", help="Start of the range: YYYY-MM-DDTHH:MM:SSZ or YYYY-MM-DD")
]
ToOption = Annotated[str | None, typer.Option("--to", help="End of the range: YYYY-MM-DDTHH:MM:SSZ or YYYY-MM-DD")]
SortByOption = Annotated[
    str | None,
    typer.Option("--sortby", help="Sort results by direction and field: [+|-][start_datetime|end_datetime|datetime]"),
]
LimitOption = Annotated[
    int | None, typer.Option("--limit", min=0, max=65535, help="Limit on the number of items returned")
]
PageOption = Annotated[
    int | None, typer.Option("--page", min=0, max=65535, help="Page number to retrieve for paginated responses")
]


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn library errors into a message on stderr and a non-zero exit status."""
    from copctl.errors import CopctlError

    try:
        yield
    except CopctlError as e:
        log.debug("Command failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _parse_bound(value: str | None, option: str, ceil: bool) -> datetime | None:
    from copctl.query import parse_datetime

    if value is None:
        return None
    try:
        return parse_datetime(value, ceil=ceil)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=option)


def _ensure_token(session: requests.Session):
    from copctl.auth import ODataAuthenticator
    from copctl.config import get_settings
    from copctl.model import Credentials
    from copctl.store import ConfigStore

    credentials = Credentials.from_env()
    if credentials.is_placeholder:
        typer.echo("Error: template value present in credentials, check COPERNICUS_USER", err=True)
        raise typer.Exit(code=1)

    settings = get_settings()
    store = ConfigStore()
    config = store.load()
    authenticator = ODataAuthenticator(
        token_url=settings.auth.token_url,
        client_id=settings.auth.client_id,
        session=session,
    )
    log.info("Checking auth...")
    token = authenticator.ensure_valid(config.auth_token, credentials)
    store.save(config.model_copy(update={"auth_token": token}))
    return token


def _catalogue(session: requests.Session):
    from copctl.catalogue import CatalogueClient
    from copctl.config import get_settings

    settings = get_settings()
    return CatalogueClient(
        session=session,
        search_url=settings.catalogue.search_url,
        list_url=settings.catalogue.list_url,
        timeout=settings.catalogue.timeout,
    )


def _print_collection(collection) -> None:
    from copctl.formatting import render

    if not collection.features:
        typer.echo("No features found.")
        return
    typer.echo(f"features:\n{render(collection)}")


@app.callback()
def main(
    log_level: Annotated[str, typer.Option("--log-level", "-l", help="Set logging level")] = "WARNING",
    progress: Annotated[Literal["empty", "simple", "rich"], typer.Option("--progress", "-p")] = "empty",
):
    from copctl.progress import create_reporter, registry

    reporter_cls = registry.get(progress)
    setup_logging(
        log_level=log_level,
        reporter_cls=reporter_cls,
        suppressions={"error": ["urllib3", "requests"]},
    )
    context["progress"] = create_reporter(reporter_name=progress)


@app.command()
def search(
    ids: IdsOption = None,
    collections: Annotated[
        str | None, typer.Option("--collections", help="Comma separated collections to search in")
    ] = None,
    bbox: BBoxOption = None,
    start: FromOption = None,
    end: ToOption = None,
    sortby: SortByOption = None,
    limit: LimitOption = None,
    page: PageOption = None,
):
    """Search imagery across collections."""
    from copctl.model import QueryFilter
    from copctl.utils import create_session

    params = QueryFilter(
        ids=ids,
        collections=collections,
        bbox=bbox,
        start=_parse_bound(start, "--from", ceil=False),
        end=_parse_bound(end, "--to", ceil=True),
        sortby=sortby,
        limit=limit,
        page=page,
    )
    with exit_on_error(), create_session() as session:
        token = _ensure_token(session)
        collection = _catalogue(session).search(params, token)
    _print_collection(collection)


@app.command(name="list")
def list_items(
    collection: Annotated[
        str | None, typer.Option("--collection", help="Collection to query. Defaults to SENTINEL-2")
    ] = None,
    ids: IdsOption = None,
    bbox: BBoxOption = None,
    start: FromOption = None,
    end: ToOption = None,
    sortby: SortByOption = None,
    limit: LimitOption = None,
    page: PageOption = None,
):
    """List imagery from a specific collection."""
    from copctl.config import get_settings
    from copctl.model import QueryFilter
    from copctl.utils import create_session

    collection = collection or get_settings().catalogue.default_collection
    params = QueryFilter(
        ids=ids,
        bbox=bbox,
        start=_parse_bound(start, "--from", ceil=False),
        end=_parse_bound(end, "--to", ceil=True),
        sortby=sortby,
        limit=limit,
        page=page,
    )
    with exit_on_error(), create_session() as session:
        token = _ensure_token(session)
        result = _catalogue(session).list_items(params, token, collection)
    _print_collection(result)


@app.command()
def download(
    ids: Annotated[str, typer.Option("--ids", help="Comma separated ids of the products to download")],
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-o", help="Directory where the product archives will be stored"),
    ] = Path("."),
):
    """Download imagery using ids obtained through `list` or `search`."""
    from copctl.config import get_settings
    from copctl.downloaders import HTTPDownloader, rewrite_from_settings
    from copctl.model import QueryFilter
    from copctl.utils import create_session

    settings = get_settings()
    output_dir.mkdir(parents=True, exist_ok=True)
    reporter = context.get("progress")

    with exit_on_error(), create_session() as session:
        token = _ensure_token(session)
        collection = _catalogue(session).search(QueryFilter(ids=ids), token)
        if not collection.features:
            typer.echo(f"Error: no products found for ids {ids}", err=True)
            raise typer.Exit(code=1)

        downloader = HTTPDownloader(
            session=session,
            rewrite=rewrite_from_settings(settings.download),
            chunk_size=settings.download.chunk_size,
            timeout=settings.download.timeout,
        )
        if reporter is not None:
            reporter.start(total_items=len(collection.features))
        try:
            for feature in collection.features:
                result = downloader.fetch(feature, token, output_dir)
                typer.echo(f"downloaded: {result}")
        finally:
            if reporter is not None:
                reporter.stop()


if __name__ == "__main__":
    app()
