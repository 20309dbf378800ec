"""Client for the hh.ru vacancies API: employer listing and relevance search."""

import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .logger import get_logger
from .models import Posting
from .retry import RequestSpec, RetryError, fetch_with_retry

logger = get_logger()

HH_API_URL = "https://api.hh.ru/vacancies"
DEFAULT_USER_AGENT = "analyzer-script/1.0"
PAGE_SIZE = 100
SEARCH_WINDOW = 100


class BoardError(Exception):
    """Raised when the job board cannot deliver a usable answer."""
    pass


class JobBoardClient:
    """Talks to the job board through ``fetch_with_retry``.

    The session is injectable so tests (and callers sharing a connection
    pool) can supply their own.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        base_url: str = HH_API_URL,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session if session is not None else requests.Session()
        self.user_agent = user_agent
        self.base_url = base_url
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def _get_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        spec = RequestSpec(
            url=self.base_url,
            params=params,
            headers={"User-Agent": self.user_agent},
        )
        resp = fetch_with_retry(
            self.session,
            spec,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self.sleep,
            on_attempt=lambda attempt: logger.record_api_call(),
        )
        try:
            data = resp.json()
        except ValueError as e:
            preview = resp.text[:200].replace("\n", " ")
            raise BoardError(f"JSON decode failed for {self.base_url!r}; body starts: {preview!r}") from e
        if not isinstance(data, dict):
            raise BoardError(f"Unexpected payload from {self.base_url!r}: {type(data).__name__}")
        return data

    def fetch_all_postings(self, employer_id) -> List[Posting]:
        """Walk every page of the employer's active (non-archived) postings.

        Stops on an empty page or once the server-reported page count has
        been consumed. Postings keep server order within and across pages.

        Raises:
            BoardError: If any page fails; no partial list is returned
        """
        postings: List[Posting] = []
        page = 0
        while True:
            params = {
                "employer_id": employer_id,
                "per_page": PAGE_SIZE,
                "page": page,
                "archived": "false",
            }
            try:
                data = self._get_json(params)
                items = data.get("items") or []
                if not items:
                    break
                postings.extend(Posting.from_api(item) for item in items)
            except RetryError as e:
                logger.record_error(f"ListingFetch_{e.status or 'transport'}")
                raise BoardError(
                    f"Failed to fetch postings for employer {employer_id} (page {page}): {e}"
                ) from e
            except (KeyError, TypeError, ValueError) as e:
                logger.record_error("MalformedPosting")
                raise BoardError(
                    f"Malformed posting in page {page} for employer {employer_id}: {e!r}"
                ) from e

            page += 1
            logger.debug("Fetched listing page", employer_id=str(employer_id), page=page, items=len(items))
            if data.get("pages") == page:
                break

        logger.record_postings_fetched(len(postings))
        return postings

    def search(self, text: str, area_id: int, schedule_id: Optional[str]) -> Dict[str, Any]:
        """Run one relevance-ordered search and return the decoded payload.

        Raises:
            BoardError: If the request fails or the body is not a JSON object
        """
        params = {
            "text": text,
            "area": area_id,
            "order_by": "relevance",
            "per_page": SEARCH_WINDOW,
        }
        if schedule_id is not None:
            params["schedule"] = schedule_id
        try:
            return self._get_json(params)
        except RetryError as e:
            logger.record_error(f"Search_{e.status or 'transport'}")
            raise BoardError(f"Search failed for {text!r}: {e}") from e
