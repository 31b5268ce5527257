"""
Release lookup and artifact downloads over HTTP.
"""

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

import httpx

from gwtm.config import LATEST_RELEASE_URL, TOOL_NAME
from .errors import FilesystemError, NetworkError, NotFound, ParseError

RELEASE_CHECK_TIMEOUT = 10.0
DOWNLOAD_TIMEOUT = 60.0
CHUNK_SIZE = 8192


@contextmanager
def _session(client: Optional[httpx.Client]) -> Iterator[httpx.Client]:
    """Yield client, or a throwaway client closed on exit when none is given."""
    if client is not None:
        yield client
        return
    with httpx.Client() as owned:
        yield owned


def fetch_latest_version(
    client: Optional[httpx.Client] = None,
    url: str = LATEST_RELEASE_URL,
    timeout: float = RELEASE_CHECK_TIMEOUT
) -> str:
    """Return the latest published release tag without its leading 'v'."""
    headers = {
        'User-Agent': TOOL_NAME,
        'Accept': 'application/vnd.github+json',
    }

    with _session(client) as session:
        try:
            response = session.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise NetworkError(f"failed to fetch latest release: {e}") from e

    if response.status_code == 404:
        raise NotFound("no releases found")
    if response.status_code != 200:
        raise NetworkError(
            f"release API returned status {response.status_code}",
            status_code=response.status_code
        )

    try:
        release = response.json()
    except ValueError as e:
        raise ParseError(f"failed to parse release response: {e}") from e

    if not isinstance(release, dict):
        raise ParseError("failed to parse release response: expected a JSON object")

    tag_name = release.get('tag_name')
    if tag_name is not None and not isinstance(tag_name, str):
        raise ParseError("failed to parse release response: tag_name is not a string")
    if not tag_name:
        raise NotFound("no releases found")

    return tag_name[1:] if tag_name.startswith('v') else tag_name


def download_file(
    url: str,
    destination: Union[str, Path],
    client: Optional[httpx.Client] = None,
    timeout: float = DOWNLOAD_TIMEOUT
) -> None:
    """Stream url into destination, overwriting it. Never retries.

    httpx applies ``timeout`` to each connect and read separately, so the
    whole transfer, body included, is additionally bounded by it here.
    """
    destination = Path(destination)
    deadline = time.monotonic() + timeout

    with _session(client) as session:
        try:
            with session.stream('GET', url, timeout=timeout, follow_redirects=True) as response:
                if response.status_code != 200:
                    raise NetworkError(
                        f"HTTP {response.status_code}: {url}",
                        status_code=response.status_code
                    )
                with open(destination, 'wb') as f:
                    for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                        if time.monotonic() > deadline:
                            raise NetworkError(f"download timed out after {timeout:g}s: {url}")
                        f.write(chunk)
        except httpx.HTTPError as e:
            raise NetworkError(f"{e}: {url}") from e
        except OSError as e:
            raise FilesystemError(f"failed to write {destination}: {e}") from e
