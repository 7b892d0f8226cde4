from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Optional

import requests


class AppiumHTTPError(RuntimeError):
    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        response_json: Optional[dict[str, Any]] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.error_code = error_code
        self.response_json = response_json
        self.response_text = response_text


@dataclass(frozen=True)
class WebDriverElementRef:
    element_id: str


def _extract_webdriver_value(payload: dict[str, Any]) -> Any:
    # W3C responses wrap the result in {"value": ...}
    if "value" in payload:
        return payload["value"]
    return payload


def _extract_element_id(element_obj: Any) -> str:
    if not isinstance(element_obj, dict):
        raise ValueError(f"Unexpected element payload type: {type(element_obj)}")

    w3c_key = "element-6066-11e4-a52e-4f735466cecf"
    if w3c_key in element_obj and element_obj[w3c_key]:
        return str(element_obj[w3c_key])

    # Legacy JSONWire key
    if "ELEMENT" in element_obj and element_obj["ELEMENT"]:
        return str(element_obj["ELEMENT"])

    raise ValueError(f"Could not extract element id from payload keys: {list(element_obj.keys())}")


class AppiumHTTPClient:
    """
    Small Appium client speaking the WebDriver HTTP protocol.

    Only the endpoints the snapshot walkthrough needs are implemented:
    session lifecycle, element lookup, click and screenshot.
    """

    def __init__(
        self,
        server_url: str,
        *,
        timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        self.server_url = server_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session_id: Optional[str] = None
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self.server_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AppiumHTTPError(
                message=f"Failed to call Appium server: {e}",
                method=method,
                url=url,
            ) from e

        response_text = None
        response_json: Optional[dict[str, Any]] = None
        try:
            response_json = response.json()
        except ValueError:
            response_text = response.text

        if response.status_code >= 400:
            error_code = None
            details = None
            if isinstance(response_json, dict):
                value = _extract_webdriver_value(response_json)
                if isinstance(value, dict):
                    error_code = value.get("error")
                    details = value.get("message") or error_code
            raise AppiumHTTPError(
                message=f"Appium HTTP {response.status_code} for {method} {path}"
                + (f": {details}" if details else ""),
                method=method,
                url=url,
                status_code=response.status_code,
                error_code=error_code,
                response_json=response_json,
                response_text=response_text,
            )

        if not isinstance(response_json, dict):
            raise AppiumHTTPError(
                message=f"Appium returned non-JSON response for {method} {path}",
                method=method,
                url=url,
                status_code=response.status_code,
                response_text=response_text,
            )

        return response_json

    def create_session(self, session_payload: dict[str, Any]) -> str:
        """
        Create an Appium session, which also launches the app under test.

        `session_payload` must be a valid WebDriver session creation payload:
          {"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}}
        """
        if not isinstance(session_payload, dict) or not session_payload:
            raise ValueError("session_payload must be a non-empty dict")

        response = self._request("POST", "/session", json=session_payload)

        value = _extract_webdriver_value(response)
        session_id = None
        if isinstance(value, dict):
            session_id = value.get("sessionId")
        session_id = session_id or response.get("sessionId")

        if not session_id:
            raise AppiumHTTPError(
                message="Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=response,
            )

        self.session_id = str(session_id)
        return self.session_id

    def delete_session(self) -> None:
        if not self.session_id:
            return
        session_id = self.session_id
        try:
            self._request("DELETE", f"/session/{session_id}")
        finally:
            self.session_id = None

    def get_screenshot_png_bytes(self) -> bytes:
        self._require_session()
        url = f"{self.server_url}/session/{self.session_id}/screenshot"
        response = self._request("GET", f"/session/{self.session_id}/screenshot")
        value = _extract_webdriver_value(response)
        if not isinstance(value, str):
            raise AppiumHTTPError(
                message="Unexpected /screenshot response shape (expected base64 string)",
                method="GET",
                url=url,
                response_json=response,
            )
        try:
            return base64.b64decode(value, validate=True)
        except ValueError as e:
            raise AppiumHTTPError(
                message=f"Failed to decode screenshot base64: {e}",
                method="GET",
                url=url,
                response_json=response,
            ) from e

    def find_elements(self, *, using: str, value: str) -> list[WebDriverElementRef]:
        self._require_session()
        if not using or not value:
            raise ValueError("'using' and 'value' are required to find elements")
        response = self._request(
            "POST",
            f"/session/{self.session_id}/elements",
            json={"using": using, "value": value},
        )
        payload = _extract_webdriver_value(response)
        if not isinstance(payload, list):
            raise AppiumHTTPError(
                message="Unexpected /elements response shape (expected list)",
                method="POST",
                url=f"{self.server_url}/session/{self.session_id}/elements",
                response_json=response,
            )
        return [WebDriverElementRef(element_id=_extract_element_id(item)) for item in payload]

    def click(self, element: WebDriverElementRef) -> None:
        self._require_session()
        self._request("POST", f"/session/{self.session_id}/element/{element.element_id}/click", json={})

    def _require_session(self) -> None:
        if not self.session_id:
            raise RuntimeError("No active Appium session. Call create_session() first.")
