from typing import Optional
import httpx

def error_message(response: httpx.Response, default: str) -> str:
    """Pull the collaborator's own message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        if isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
        error = body.get("error")
        if isinstance(error, dict) and error.get("description"):
            return str(error["description"])
        if isinstance(error, str) and error:
            return error
    return default

def json_body(response: httpx.Response) -> dict:
    if not response.content:
        return {}
    body = response.json()
    return body if isinstance(body, dict) else {"result": body}

def as_int_if_numeric(value: Optional[str]):
    """Shipment ids travel as strings here but the logistics API wants integers."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value
