# client.py
# requests-based client for the backend service. One request/response per call, no retries.

import logging
from typing import Any, Dict, List, Optional

import requests

from . import config
from .errors import AuthorizationError, BackendRejection, TransportError

logger = logging.getLogger("itemflow.workflow")

TOKEN_HEADER = "X-Session-Token"


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"Request failed ({resp.status_code})"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, list):
            # pydantic validation errors
            return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
        if detail:
            return str(detail)
    return resp.text or f"Request failed ({resp.status_code})"


class BackendClient:
    def __init__(self, api_url: Optional[str] = None, token: Optional[str] = None,
                 session=None, timeout: Optional[float] = None):
        self.api_url = (api_url or config.API_URL).rstrip("/")
        self.token = token if token is not None else config.API_TOKEN
        self.session = session or requests.Session()
        self.timeout = timeout or config.REQUEST_TIMEOUT

    def _call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        if not self.token:
            raise AuthorizationError("You are not signed in. Please sign in and try again.")
        url = f"{self.api_url}/api/v1{path}"
        try:
            resp = self.session.request(
                method, url, json=body, headers={TOKEN_HEADER: self.token}, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError() from e

        if resp.status_code in (401, 403):
            raise AuthorizationError(_error_message(resp))
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning("%s %s rejected (%s): %s", method, path, resp.status_code, message)
            raise BackendRejection(message, status_code=resp.status_code)
        return resp.json()

    # --- designer operations ---

    def get_item_state(self, item_id: int) -> Dict[str, Any]:
        return self._call("GET", f"/items/{item_id}/state")

    def submit_rfq(self, item_id: int, rfq: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", f"/items/{item_id}/rfq", rfq)

    def award_bid(self, item_id: int, bid_id: int) -> Dict[str, Any]:
        return self._call("POST", f"/items/{item_id}/award", {"bid_id": bid_id})

    def request_cad_prototype(self, item_id: int, bid_id: int) -> Dict[str, Any]:
        return self._call("POST", f"/items/{item_id}/cad-prototype", {"bid_id": bid_id})

    def request_cad_revision(self, payment_id: int, item_id: int, files: List[Dict[str, Any]],
                             note: str = "") -> Dict[str, Any]:
        body = {"payment_id": payment_id, "files": files, "note": note}
        return self._call("POST", f"/items/{item_id}/cad/revision", body)

    def approve_cad(self, payment_id: int, item_id: int) -> Dict[str, Any]:
        return self._call("POST", f"/items/{item_id}/cad/approve", {"payment_id": payment_id})

    def approve_prototype(self, item_id: int, payment_id: int, bid_id: int, version: int) -> Dict[str, Any]:
        body = {"payment_id": payment_id, "bid_id": bid_id, "version": version}
        return self._call("POST", f"/items/{item_id}/prototype/approve", body)

    def request_prototype_changes(self, payment_id: int, item_id: int, bid_id: int, version: int,
                                  feedback: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        body = {"payment_id": payment_id, "bid_id": bid_id, "version": version, "feedback": feedback}
        return self._call("POST", f"/items/{item_id}/prototype/changes", body)

    def get_timeline(self, item_id: int) -> Dict[str, Any]:
        return self._call("GET", f"/items/{item_id}/timeline")

    # --- item facts ---

    def list_items(self) -> List[Dict[str, Any]]:
        return self._call("GET", "/items")

    def create_item(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", "/items", fields)

    def update_item(self, item_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("PATCH", f"/items/{item_id}", fields)

    def get_events(self, item_id: int) -> List[Dict[str, Any]]:
        return self._call("GET", f"/items/{item_id}/events")
