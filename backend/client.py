"""
HTTP client for the remote logging platform.

Only fetches raw records; interpretation lives in ``analyzer`` and ``quality``.
"""

from typing import Any, Dict, List, Optional

import requests

from config import Config
from errors import InvalidInput, PlatformError
from logging_config import get_logger

MAX_CALLID_LEN = 255


def validate_callid(callid) -> str:
    if not isinstance(callid, str) or not callid.strip():
        raise InvalidInput("callid is required and must be a non-empty string")
    if len(callid) > MAX_CALLID_LEN:
        raise InvalidInput(f"callid must be at most {MAX_CALLID_LEN} characters")
    return callid.strip()


class PlatformClient:
    """Thin wrapper over the platform's ``log/*`` endpoints."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.base_url = config.api_url.rstrip("/") + "/"
        self.timeout = config.api_timeout
        self.session = session or requests.Session()
        self.session.auth = (config.api_username, config.api_password)
        self.logger = get_logger(__name__)

    def get_sip_trace(self, callid: str, callidb: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"callid": validate_callid(callid)}
        if callidb:
            params["callidb"] = callidb
        return self._as_list(self._get("log/trace", params))

    def get_rtcp_quality(self, callid: str) -> List[Dict[str, Any]]:
        data = self._get("log/rtcp", {"callid": validate_callid(callid)})
        # the endpoint answers either a bare list or {"processed": [...]}
        if isinstance(data, dict):
            data = data.get("processed") or []
        return self._as_list(data)

    def get_class5_logs(self, callid: str) -> List[Dict[str, Any]]:
        return self._as_list(self._get("log/class5", {"callid": validate_callid(callid)}))

    def search_call_logs(self, search: str) -> List[Dict[str, Any]]:
        if not isinstance(search, str) or not search.strip():
            raise InvalidInput("search parameter is required and must be a non-empty string")
        return self._as_list(self._get("log", {"s": search.strip()}))

    def _get(self, path: str, params: Dict[str, str]) -> Any:
        url = self.base_url + path
        self.logger.debug("platform_request", path=path, params=params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self.logger.warning("platform_http_error", path=path, status_code=status)
            raise PlatformError(f"{path} returned HTTP {status}", status_code=status) from e
        except requests.RequestException as e:
            self.logger.warning("platform_unreachable", path=path, error=str(e))
            raise PlatformError(f"{path} request failed: {e}") from e
        except ValueError as e:
            raise PlatformError(f"{path} returned a non-JSON body") from e

    @staticmethod
    def _as_list(data) -> List[Dict[str, Any]]:
        return data if isinstance(data, list) else []
