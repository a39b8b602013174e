import asyncio
import json
import logging
import re
import ssl
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

import aiohttp
import certifi

from mcp_ckan_server.config import LOGGER_NAME, Settings
from mcp_ckan_server.errors import CKANAPIError, FeatureDisabledError

logger = logging.getLogger(LOGGER_NAME)

MATCH_ALL = "*:*"

# The activity feed is the heaviest query CKAN serves
_TIMEOUT_MULTIPLIERS = {"recently_changed_packages_activity_list": 2}
_ACTIVITY_DEFAULT_WINDOW = timedelta(hours=1)

_UNQUOTED_ORG = re.compile(r'(\borganization:)([^"\s]\S*)')
_QUOTED_ORG = re.compile(r'\borganization:"([^"]+)"')
_FORBIDDEN_SQL = re.compile(r"\b(drop|delete|update|insert|alter|create|grant|revoke)\b", re.IGNORECASE)

IdArgument = Union[str, Mapping]


def encode_param(value: Any) -> Any:
    """Encode a single query-string value the way CKAN expects it"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return value


def encode_params(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: encode_param(value) for key, value in params.items() if value is not None}


def drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def normalize_query(q: Optional[str]) -> str:
    """Solr rejects a bare ``*``; its match-all token is ``*:*``"""
    if q is None or q == "" or q == "*":
        return MATCH_ALL
    return q


def normalize_filter(fq: Any) -> Any:
    """Quote organization slugs and OR them with the legacy publisher field.

    Unquoted hyphenated slugs are otherwise parsed by Solr as subtraction,
    e.g. ``organization:foo-bar`` becomes
    ``(organization:"foo-bar" OR publisher:"foo-bar")``.
    """
    if isinstance(fq, list):
        return [normalize_filter(item) for item in fq]
    if not isinstance(fq, str):
        return fq
    quoted = _UNQUOTED_ORG.sub(r'\1"\2"', fq)
    return _QUOTED_ORG.sub(r'(organization:"\1" OR publisher:"\1")', quoted)


def forbidden_sql_verb(sql: str) -> Optional[str]:
    match = _FORBIDDEN_SQL.search(sql)
    return match.group(1).upper() if match else None


def _coerce_id(value: Optional[IdArgument], *keys: str) -> Optional[str]:
    if isinstance(value, Mapping):
        for key in keys or ("id",):
            if value.get(key):
                return value[key]
        return None
    return value


def _error_message(text: str, fallback: Optional[str] = None) -> str:
    try:
        body = json.loads(text)
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if error:
        return json.dumps(error, ensure_ascii=False)
    return text or fallback or "Unknown error"


class CKANAPIClient:
    """CKAN action API client.

    Every public coroutine maps to exactly one CKAN action and returns the
    decoded JSON body unchanged. Failures surface as :class:`CKANAPIError`.
    """

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings
        self.base_url = settings.base_url.rstrip('/')
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        if self.session is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            self.session = aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=ssl_context))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'User-Agent': self.settings.user_agent,
        }

    def _clamp_rows(self, value: Optional[int], default: Optional[int] = None) -> Optional[int]:
        if value is None:
            return default
        return min(max(0, int(value)), self.settings.max_rows)

    @staticmethod
    def _clamp_offset(value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        return max(0, int(value))

    async def _make_request(self, method: str, action: str, params: Optional[Dict[str, Any]] = None,
                            payload: Optional[Dict[str, Any]] = None) -> Any:
        if self.session is None:
            raise RuntimeError("CKAN client session is not open")

        url = f"{self.base_url}/{action}"
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout * _TIMEOUT_MULTIPLIERS.get(action, 1))
        kwargs: Dict[str, Any] = {"headers": self._get_headers(), "timeout": timeout}
        if method == "GET":
            kwargs["params"] = encode_params(params or {})
        else:
            kwargs["json"] = drop_none(payload or {})

        logger.debug(f"CKAN request {method} {url}")
        try:
            async with self.session.request(method, url, **kwargs) as response:
                raw = await response.read()
                status = response.status
                reason = response.reason
                request_url = str(response.url)
        except asyncio.TimeoutError:
            raise CKANAPIError(action, f"Request timed out after {timeout.total:g}s", url=url)
        except aiohttp.ClientError as e:
            raise CKANAPIError(action, str(e) or e.__class__.__name__, url=url)
        logger.debug(f"CKAN response {request_url} status={status}")

        text = raw.decode("utf-8", errors="replace")
        if not 200 <= status < 300:
            raise CKANAPIError(action, _error_message(text, reason), status, request_url)
        try:
            return json.loads(text)
        except ValueError:
            raise CKANAPIError(action, f"Invalid JSON response: {text[:500]}", status, request_url)

    async def _get(self, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._make_request("GET", action, params=params)

    async def _post(self, action: str, payload: Dict[str, Any]) -> Any:
        return await self._make_request("POST", action, payload=payload)

    # Catalog / datasets

    async def package_search(self, q: Optional[str] = None, fq: Union[str, List[str], None] = None,
                             sort: Optional[str] = None, rows: Optional[int] = None,
                             start: Optional[int] = None, facet_field: Optional[List[str]] = None,
                             facet_limit: Optional[int] = None) -> Any:
        params = {
            "q": normalize_query(q),
            "fq": normalize_filter(fq),
            "sort": sort,
            "rows": self._clamp_rows(rows, self.settings.default_rows),
            "start": self._clamp_offset(start),
            "facet.field": facet_field,
            "facet.limit": facet_limit,
        }
        return await self._get("package_search", params)

    async def package_show(self, id_or_name: IdArgument) -> Any:
        return await self._get("package_show", {"id": _coerce_id(id_or_name)})

    async def package_list(self, offset: Optional[int] = None, limit: Optional[int] = None,
                           since: Optional[str] = None) -> Any:
        params = {
            "offset": self._clamp_offset(offset),
            "limit": self._clamp_rows(limit),
            "since": since,
        }
        return await self._get("package_list", params)

    async def current_package_list_with_resources(self, offset: Optional[int] = None,
                                                  limit: Optional[int] = None) -> Any:
        params = {"offset": self._clamp_offset(offset), "limit": self._clamp_rows(limit)}
        return await self._get("current_package_list_with_resources", params)

    async def package_autocomplete(self, q: Union[str, Mapping], limit: Optional[int] = None) -> Any:
        if isinstance(q, Mapping):
            q, limit = q.get("q"), q.get("limit", limit)
        return await self._get("package_autocomplete", {"q": q, "limit": self._clamp_rows(limit)})

    async def package_activity_list(self, id: str, limit: Optional[int] = None,
                                    offset: Optional[int] = None) -> Any:
        params = {
            "id": id,
            "limit": self._clamp_rows(limit),
            "offset": self._clamp_offset(offset),
        }
        return await self._get("package_activity_list", params)

    async def recently_changed_packages_activity_list(self, since_time: Optional[str] = None,
                                                      limit: Optional[int] = None,
                                                      offset: Optional[int] = None) -> Any:
        if not since_time:
            since = datetime.now(timezone.utc) - _ACTIVITY_DEFAULT_WINDOW
            since_time = since.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        params = {
            "since_time": since_time,
            "limit": self._clamp_rows(limit),
            "offset": self._clamp_offset(offset),
        }
        return await self._get("recently_changed_packages_activity_list", params)

    # Organizations / groups / tags

    async def organization_list(self, all_fields: Optional[bool] = None, limit: Optional[int] = None,
                                offset: Optional[int] = None) -> Any:
        params = {
            "all_fields": all_fields,
            "limit": self._clamp_rows(limit),
            "offset": self._clamp_offset(offset),
        }
        return await self._get("organization_list", params)

    async def organization_show(self, id: IdArgument) -> Any:
        return await self._get("organization_show", {"id": _coerce_id(id)})

    async def group_list(self, order_by: Optional[str] = None, limit: Optional[int] = None,
                         offset: Optional[int] = None, all_fields: Optional[bool] = None) -> Any:
        params = {
            "order_by": order_by,
            "limit": self._clamp_rows(limit),
            "offset": self._clamp_offset(offset),
            "all_fields": all_fields,
        }
        return await self._get("group_list", params)

    async def group_show(self, id: IdArgument) -> Any:
        return await self._get("group_show", {"id": _coerce_id(id)})

    async def tag_list(self, query: Optional[str] = None) -> Any:
        # tag_list has no limit parameter upstream; tag_autocomplete does
        return await self._get("tag_list", {"query": query})

    async def tag_autocomplete(self, q: Union[str, Mapping], limit: Optional[int] = None) -> Any:
        if isinstance(q, Mapping):
            q, limit = q.get("q"), q.get("limit", limit)
        data = await self._get("tag_autocomplete", {"q": q, "limit": self._clamp_rows(limit)})
        # older CKAN versions return bare tag names
        if isinstance(data, dict) and isinstance(data.get("result"), list):
            items = [{"name": item} if isinstance(item, str) else item for item in data["result"]]
            data = {**data, "result": items}
        return data

    async def tag_show(self, id: IdArgument) -> Any:
        return await self._get("tag_show", {"id": _coerce_id(id)})

    async def license_list(self) -> Any:
        return await self._get("license_list")

    async def vocabulary_list(self) -> Any:
        return await self._get("vocabulary_list")

    async def vocabulary_show(self, id: IdArgument) -> Any:
        return await self._get("vocabulary_show", {"id": _coerce_id(id)})

    # Resources & views

    async def resource_show(self, id: IdArgument) -> Any:
        return await self._get("resource_show", {"id": _coerce_id(id)})

    async def resource_view_show(self, id: IdArgument) -> Any:
        return await self._get("resource_view_show", {"id": _coerce_id(id)})

    async def resource_view_list(self, resource_id: IdArgument) -> Any:
        return await self._get("resource_view_list", {"id": _coerce_id(resource_id, "resource_id", "id")})

    # Platform status / help

    async def status_show(self) -> Any:
        return await self._get("status_show")

    async def help_show(self, name: str) -> Any:
        return await self._get("help_show", {"name": name})

    # Datastore

    async def datastore_info(self, id: str, include_private: Optional[bool] = None) -> Any:
        return await self._get("datastore_info", {"id": id, "include_private": include_private})

    async def datastore_search(self, resource_id: str, q: Union[str, Dict[str, Any], None] = None,
                               filters: Optional[Dict[str, Any]] = None,
                               fields: Optional[List[str]] = None, sort: Optional[str] = None,
                               language: Optional[str] = None, include_total: Optional[bool] = None,
                               limit: Optional[int] = None, offset: Optional[int] = None,
                               distinct: Optional[bool] = None, plain: Optional[bool] = None,
                               full_text: Optional[bool] = None) -> Any:
        params = {
            "resource_id": resource_id,
            "q": q,
            "filters": filters,
            "fields": fields,
            "sort": sort,
            "language": language,
            "include_total": include_total if isinstance(include_total, bool) else False,
            "limit": self._clamp_rows(limit, self.settings.default_rows),
            "offset": self._clamp_offset(offset),
            "distinct": distinct,
            "plain": plain,
            "full_text": full_text,
        }
        # structured payloads go in the body to keep URLs short
        if isinstance(filters, dict) or isinstance(q, dict) or isinstance(fields, list):
            return await self._post("datastore_search", params)
        return await self._get("datastore_search", params)

    async def datastore_search_sql(self, sql: Union[str, Mapping]) -> Any:
        if isinstance(sql, Mapping):
            sql = sql.get("sql") or ""
        if not self.settings.enable_sql:
            raise FeatureDisabledError(
                "datastore_search_sql", "Disabled by server configuration (ENABLE_SQL=false)")
        verb = forbidden_sql_verb(sql)
        if verb:
            raise FeatureDisabledError("datastore_search_sql", f"Forbidden SQL verb detected: {verb}")
        return await self._post("datastore_search_sql", {"sql": sql})
