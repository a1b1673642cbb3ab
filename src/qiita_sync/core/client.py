import json
import logging
from typing import Any

import requests

from ..config import Config
from ..errors import InvalidIdentifierFormatError
from ..sync.models import RemoteResponse, SyncAction
from ..validators import validate_item_id

logger = logging.getLogger(__name__)

API_VERSION = "v2"
API_ITEM_ENDPOINT = f"/api/{API_VERSION}/items"
USER_AGENT = "GitHub to Qiita"


def build_item_body(
    content: str | bytes, header: dict[str, Any], action: SyncAction
) -> dict[str, Any]:
    """
    Build the JSON body for a Qiita item create/update request.

    Tags are taken from the header's ``topics`` list; the item is private
    unless ``published`` is true.  ``tweet`` is only sent on create, since
    Qiita only tweets new items.

    https://qiita.com/api/v2/docs
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8")

    published = bool(header.get("published"))
    body: dict[str, Any] = {
        "body": content,
        "coediting": False,
        "group_url_name": None,
        "private": not published,
        "tags": [{"name": topic} for topic in header.get("topics", [])],
        "title": header.get("title"),
    }
    if action == SyncAction.CREATE:
        body["tweet"] = published
    return body


def parse_response(response: requests.Response) -> RemoteResponse:
    """Convert a ``requests.Response`` into a ``RemoteResponse``.

    The ``id`` and ``url`` fields are read from the JSON body when it is
    a JSON object; any other body leaves them unset.
    """
    text = response.text or ""
    item_id = None
    url = None
    try:
        data = json.loads(text) if text else None
    except ValueError:
        data = None
    if isinstance(data, dict):
        raw_id = data.get("id")
        item_id = str(raw_id) if raw_id is not None else None
        url = data.get("url")

    return RemoteResponse(
        success=200 <= response.status_code < 300,
        status_code=response.status_code,
        body=text,
        item_id=item_id,
        url=url,
    )


class QiitaClient:
    def __init__(self, config: Config):
        self.config = config
        self.base_url = config.api_base_url.rstrip("/")
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        """Lazily created, authenticated ``requests.Session``."""
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.access_token}",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
                "Origin": self.base_url,
            }
        )
        return session

    def item_url(self, item_id: str | None = None) -> str:
        """Return the items endpoint URL, optionally for a single item."""
        url = f"{self.base_url}{API_ITEM_ENDPOINT}"
        if item_id:
            url = f"{url}/{item_id}"
        return url

    def _request(
        self, method: str, url: str, body: dict[str, Any]
    ) -> RemoteResponse:
        """
        Send a JSON request to the Qiita API.

        Non-2xx responses are returned (``success=False``), not raised;
        transport failures propagate as ``requests.RequestException``.
        """
        logger.debug("%s %s", method, url)
        response = self.session.request(
            method,
            url,
            data=json.dumps(body),
            timeout=(10, self.config.timeout),
        )
        result = parse_response(response)
        logger.debug(
            "%s %s -> HTTP %d", method, url, result.status_code
        )
        return result

    def create_item(self, body: dict[str, Any]) -> RemoteResponse:
        """
        Create a new Qiita item.

        Args:
            body: Request body from ``build_item_body``.

        Returns:
            RemoteResponse; on success ``item_id`` carries the new id.
        """
        return self._request("POST", self.item_url(), body)

    def update_item(
        self, item_id: str, body: dict[str, Any]
    ) -> RemoteResponse:
        """
        Update an existing Qiita item.

        Raises:
            InvalidIdentifierFormatError: If *item_id* is not a valid Qiita
                item id.
        """
        is_valid, message = validate_item_id(item_id)
        if not is_valid:
            raise InvalidIdentifierFormatError(message)
        return self._request("PATCH", self.item_url(item_id), body)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
