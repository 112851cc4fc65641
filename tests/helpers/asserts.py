from typing import Optional, Dict, Any
from fastapi.testclient import TestClient

def api_call(client: TestClient, method: str, path: str, headers: Optional[Dict[str, str]] = None, json: Optional[Dict[str, Any]] = None, expected_status: Optional[int] = None):
    response = client.request(method, path, headers=headers, json=json)
    try:
        body = response.json()
    except ValueError:
        body = response.text
    if expected_status is None:
        ok = 200 <= response.status_code < 300
    else:
        ok = response.status_code == expected_status
    assert ok, f"{method} {path} => {response.status_code}, body={body}, json={json}"
    return body

def data_of(body: Dict[str, Any]) -> Any:
    assert "data" in body, f"Missing data envelope: {body}"
    return body["data"]

def assert_error(body: Dict[str, Any], code: str):
    assert body.get("error", {}).get("code") == code, f"Expected error {code}, got {body}"
    assert body.get("request_id"), "Error response without request id"
