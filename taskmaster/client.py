"""Synchronous HTTP client for the UI layer."""

import os
from typing import Any, Callable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_BASE_URL: str | None = None
_TOKEN: str | None = None
_USER_GETTER: Callable[[], str | None] | None = None
_TIMEZONE: str | None = None

# POST and PATCH are never retried.
RETRY_METHODS = ("GET", "PUT", "DELETE")


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=RETRY_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(base_url: str | None, token: str | None, user_getter: Callable[[], str | None], timezone: str | None = None):
    global _BASE_URL, _TOKEN, _USER_GETTER, _TIMEZONE
    _BASE_URL = base_url
    _TOKEN = token
    _USER_GETTER = user_getter
    _TIMEZONE = timezone


def api_base_url():
    return _BASE_URL or os.getenv("TASKMASTER_API_URL") or ""


def backend_token():
    return _TOKEN or os.getenv("BACKEND_SESSION_SECRET") or ""


def is_enabled():
    return bool(api_base_url() and backend_token())


def request(method: str, path: str, params: dict | None = None, json: dict | None = None, timeout: int = 10) -> Any:
    base = api_base_url().rstrip("/")
    if not base:
        raise RuntimeError("TASKMASTER_API_URL not configured")
    token = backend_token()
    if not token:
        raise RuntimeError("BACKEND_SESSION_SECRET not configured")
    user_id = _USER_GETTER() if _USER_GETTER else None
    if not user_id:
        raise RuntimeError("Missing user id for API request")
    headers = {
        "X-User-Id": user_id,
        "X-Backend-Token": token,
    }
    if _TIMEZONE:
        headers["X-User-Timezone"] = _TIMEZONE
    url = f"{base}{path}"
    response = _SESSION.request(method, url, params=params, json=json, headers=headers, timeout=timeout)
    if not response.ok:
        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        raise RuntimeError(f"API error {response.status_code} {response.reason}: {detail}")
    if response.status_code == 204:
        return None
    return response.json()


def activate():
    return request("POST", "/v1/session/activate")


def toggle_task(task_id: str):
    return request("POST", f"/v1/tasks/{task_id}/toggle")


def add_task(category_id: str, title: str, is_daily: bool = False):
    return request("POST", "/v1/tasks", json={"category_id": category_id, "title": title, "is_daily": is_daily})


def delete_task(task_id: str):
    return request("DELETE", f"/v1/tasks/{task_id}")


def rename_category(category_id: str, title: str):
    return request("PATCH", f"/v1/categories/{category_id}", json={"title": title})


def reorder_categories(category_ids: list[str]):
    return request("PUT", "/v1/categories/order", json={"category_ids": list(category_ids)})


def today_analytics():
    return request("GET", "/v1/analytics/today")


def analytics_history(limit: int = 7):
    return request("GET", "/v1/analytics/history", params={"limit": limit})
