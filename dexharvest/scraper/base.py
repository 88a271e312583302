"""
Abstract base scraper for dexharvest.

Every harvester (base index, moves, Pokémon, types) inherits from
BaseScraper and gets the following for free:

  - A requests.Session pre-configured with exponential-backoff retries
  - A fixed-interval rate limiter so we stay polite to PokeAPI
  - get_json / download helpers that turn transport, status and parse
    failures into dexharvest.errors exceptions
  - save_json (atomic) / load_name_list convenience helpers
  - An optional, capped worker pool for independent per-item fetches
  - An abstract harvest() contract that subclasses must implement

Harvesters are offline batch jobs run rarely against a public API, so the
default is strictly sequential: one request in flight at a time.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from concurrent import futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dexharvest.configs.constants import Constants
from dexharvest.errors import (
    InputFileError,
    PayloadError,
    TransportError,
    UpstreamStatusError,
)
from dexharvest.models import ItemResult

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------


@dataclass
class HarvestConfig:
    """
    Configuration shared by every BaseScraper subclass.

    Parameters
    ----------
    base_url : str
        PokeAPI root, e.g. ``https://pokeapi.co/api/v2``.
    icon_base_url : str
        Static host serving type icons as ``{n}.png``.
    locale : str
        Language code used for localized display names.
    list_limit : int
        ``limit`` query parameter for list endpoints.  Large enough to get
        the whole catalog in one page.
    data_dir : Path
        Directory holding ``base.json``, ``moves.json``, ``pokemon.json``
        and ``types.json``.
    sprites_dir : Path
        Root of the ``pokemon/`` and ``types/`` image folders.
    calls_per_second : float
        Maximum request rate.  ``0`` disables rate limiting.
    max_retries : int
        How many times to retry a 429/5xx response (with exponential back-off).
    timeout : int
        Per-request timeout in seconds.
    workers : int
        Concurrent per-item fetches.  ``1`` means sequential; values are
        capped at ``Constants.MAX_WORKERS``.
    download_sprites : bool
        Whether Pokémon sprites and type icons are written to disk.
    """

    base_url: str = Constants.POKEAPI_BASE_URL
    icon_base_url: str = Constants.TYPE_ICON_BASE_URL
    locale: str = Constants.LOCALE
    list_limit: int = Constants.LIST_LIMIT
    data_dir: Path = field(default_factory=lambda: Path(Constants.DATA_DIR))
    sprites_dir: Path = field(default_factory=lambda: Path(Constants.SPRITES_DIR))
    calls_per_second: float = Constants.CALLS_PER_SECOND
    max_retries: int = 3
    timeout: int = 30
    workers: int = 1
    download_sprites: bool = True

    def __post_init__(self) -> None:
        # Accept plain strings so callers can write HarvestConfig(data_dir="…")
        self.data_dir = Path(self.data_dir)
        self.sprites_dir = Path(self.sprites_dir)
        self.base_url = self.base_url.rstrip("/")
        self.workers = max(1, min(int(self.workers), Constants.MAX_WORKERS))

    @property
    def base_index_path(self) -> Path:
        return self.data_dir / Constants.OUTPUT_FILES["base"]

    @property
    def moves_path(self) -> Path:
        return self.data_dir / Constants.OUTPUT_FILES["moves"]

    @property
    def pokemon_path(self) -> Path:
        return self.data_dir / Constants.OUTPUT_FILES["pokemon"]

    @property
    def types_path(self) -> Path:
        return self.data_dir / Constants.OUTPUT_FILES["types"]

    @property
    def pokemon_sprites_dir(self) -> Path:
        return self.sprites_dir / "pokemon"

    @property
    def type_sprites_dir(self) -> Path:
        return self.sprites_dir / "types"


# ---------------------------------------------------------------------------
# Rate limiter dataclass
# ---------------------------------------------------------------------------


@dataclass
class RateLimiter:
    """
    Simple fixed-interval rate limiter.

    Tracks the timestamp of the last outbound call and sleeps just long
    enough to honour ``calls_per_second`` before each new request.  Safe to
    share between worker threads.
    """

    calls_per_second: float = Constants.CALLS_PER_SECOND
    # Mutable state — excluded from __init__ and __repr__
    _last_call: float = field(default=0.0, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def wait(self) -> None:
        """Block until it is safe to make the next request."""
        if self.calls_per_second <= 0:
            return
        interval = 1.0 / self.calls_per_second
        with self._lock:
            now = time.monotonic()
            sleep_for = interval - (now - self._last_call)
            if sleep_for > 0:
                time.sleep(sleep_for)
            self._last_call = time.monotonic()


# ---------------------------------------------------------------------------
# Abstract base scraper
# ---------------------------------------------------------------------------


class BaseScraper(ABC):
    """
    Abstract base for all dexharvest harvesters.

    Subclass and implement :py:meth:`harvest` and :py:attr:`output_path`.
    :py:meth:`run` harvests and then writes the document in one go, so a
    failing harvest never leaves a partial output file behind.

    Example
    -------
    ::

        class MyScraper(BaseScraper):
            @property
            def output_path(self) -> Path:
                return self.config.data_dir / "out.json"

            def harvest(self) -> dict[str, Any]:
                return {"example": self.get_json("https://api.example.com/data")}
    """

    def __init__(
        self,
        config: Optional[HarvestConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config if config is not None else HarvestConfig()
        self._rate_limiter = RateLimiter(self.config.calls_per_second)
        self._session = session if session is not None else self._build_session()
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------

    def _build_session(self) -> requests.Session:
        """Build a requests.Session with retry logic and a descriptive User-Agent."""
        session = requests.Session()
        retry = Retry(
            total=self.config.max_retries,
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            respect_retry_after_header=True,
            allowed_methods=["GET"],
            # Hand the last response back so callers see its status code
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers["User-Agent"] = Constants.USER_AGENT
        return session

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, url: str, stream: bool = False) -> requests.Response:
        self._rate_limiter.wait()
        try:
            return self._session.get(url, timeout=self.config.timeout, stream=stream)
        except requests.RequestException as exc:
            raise TransportError(url, str(exc)) from exc

    @staticmethod
    def _is_success(status_code: int) -> bool:
        return 200 <= status_code < 300

    def get_json(self, url: str) -> Any:
        """
        Fetch *url* and return parsed JSON (dict or list).

        Raises
        ------
        TransportError
            No HTTP response was received.
        UpstreamStatusError
            The response status is not 2xx.
        PayloadError
            The body is not valid JSON.
        """
        resp = self._request(url)
        if not self._is_success(resp.status_code):
            raise UpstreamStatusError(url, resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise PayloadError("Response body is not valid JSON", url) from exc

    def download(self, url: str, dest: Path, chunk_size: int = 8192) -> Path:
        """
        Stream the binary body of *url* into *dest*.

        The bytes land in a ``.part`` sibling first and are renamed into place
        once complete; a failed download never leaves a truncated *dest*.
        Raises the same errors as :py:meth:`get_json` (minus PayloadError).
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        part = dest.with_name(dest.name + ".part")

        with self._request(url, stream=True) as resp:
            if not self._is_success(resp.status_code):
                raise UpstreamStatusError(url, resp.status_code)
            try:
                with open(part, "wb") as fh:
                    for chunk in resp.iter_content(chunk_size=chunk_size):
                        if chunk:
                            fh.write(chunk)
            except requests.RequestException as exc:
                part.unlink(missing_ok=True)
                raise TransportError(url, str(exc)) from exc
            except OSError:
                part.unlink(missing_ok=True)
                raise

        os.replace(part, dest)
        self.logger.debug(f"Downloaded {url} → {dest}")
        return dest

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def save_json(self, data: Any, path: Path) -> None:
        """
        Write *data* as indented JSON to *path* (creates parent dirs).

        Written to a temporary sibling and renamed, so *path* is either the
        complete new document or whatever was there before.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
                fh.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self.logger.debug(f"Saved → {path}")

    def load_name_list(self, path: Path, key: str) -> list[str]:
        """
        Load the ``key`` array of names from the JSON document at *path*.

        Unlike a missing cache entry, a missing or malformed input file means
        an earlier stage has not run correctly, so it raises InputFileError.
        """
        try:
            with open(path, encoding="utf-8") as fh:
                document = json.load(fh)
        except FileNotFoundError as exc:
            raise InputFileError(path, "file not found; run the previous stage first") from exc
        except json.JSONDecodeError as exc:
            raise InputFileError(path, f"invalid JSON: {exc}") from exc
        except OSError as exc:
            raise InputFileError(path, f"unreadable: {exc}") from exc

        if not isinstance(document, dict) or key not in document:
            raise InputFileError(path, f"missing '{key}' array")
        names = document[key]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise InputFileError(path, f"'{key}' must be an array of strings")
        return names

    # ------------------------------------------------------------------
    # Per-item processing
    # ------------------------------------------------------------------

    def map_items(self, fn: Callable[[str], T], names: Sequence[str]) -> Iterator[T]:
        """
        Apply *fn* to every name, yielding each result in input order as
        soon as it is ready.

        Runs on a thread pool when ``config.workers > 1``.  The first
        exception (in input order) cancels the pending items and propagates.
        """
        if self.config.workers <= 1 or len(names) < 2:
            for name in names:
                yield fn(name)
            return

        with futures.ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            pending = [pool.submit(fn, name) for name in names]
            try:
                for future in pending:
                    yield future.result()
            except BaseException:
                for future in pending:
                    future.cancel()
                raise

    def accumulate(
        self, results: Iterable[ItemResult[Any]], label: str
    ) -> dict[str, Any]:
        """
        Fold per-item results into a name-keyed mapping of JSON records.

        Skipped items are logged and leave no trace in the mapping.
        """
        collected: dict[str, Any] = {}
        skipped = 0
        for result in results:
            if result.ok:
                collected[result.name] = result.record.to_json()
                self.logger.info(f"Processed {label}: {result.name}")
            else:
                skipped += 1
                self.logger.warning(f"Skipped {label} {result.name}: {result.reason}")
        if skipped:
            self.logger.warning(f"{skipped} {label} item(s) skipped")
        return collected

    # ------------------------------------------------------------------
    # Abstract contract
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def output_path(self) -> Path:
        """Where :py:meth:`run` writes the harvested document."""
        ...

    @abstractmethod
    def harvest(self) -> Any:
        """
        Fetch and extract everything this stage produces.

        Must not write the output file; :py:meth:`run` does that.
        """
        ...

    def run(self) -> Any:
        """Harvest, then write the full document to :py:attr:`output_path`."""
        document = self.harvest()
        self.save_json(document, self.output_path)
        self.logger.info(f"JSON saved to {self.output_path}")
        return document
