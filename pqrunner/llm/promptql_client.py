from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError

from pqrunner.errors import ChunkDecodeError, StreamError
from pqrunner.stream.chunks import CHUNK_ADAPTER, Chunk

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.promptql.pro.hasura.io/query"
DDN_TOKEN_HEADER = "x-hasura-ddn-token"


@dataclass(frozen=True)
class PromptQLConfig:
    api_key: str
    ddn_url: str
    ddn_auth: str
    api_url: str = DEFAULT_API_URL
    timezone: str = "UTC"
    timeout_s: float = 300.0


def get_promptql_config() -> PromptQLConfig:
    # Credentials are passed through as-is; the service rejects bad ones.
    return PromptQLConfig(
        api_key=os.getenv("PROMPTQL_APIKEY", ""),
        ddn_url=os.getenv("PROMPTQL_DDN_URL", ""),
        ddn_auth=os.getenv("PROMPTQL_DDN_AUTH", ""),
        api_url=os.getenv("PROMPTQL_API_URL", DEFAULT_API_URL),
        timezone=os.getenv("PROMPTQL_TIMEZONE", "UTC"),
        timeout_s=float(os.getenv("PROMPTQL_TIMEOUT", "300")),
    )


def build_query_request(
    cfg: PromptQLConfig,
    question: str,
    *,
    artifacts: Optional[List[Dict[str, Any]]] = None,
    ddn_headers: Optional[Dict[str, str]] = None,
    stream: bool = True,
) -> Dict[str, Any]:
    """Build a v1 query body with a single user interaction."""
    headers = {DDN_TOKEN_HEADER: cfg.ddn_auth}
    headers.update(ddn_headers or {})
    return {
        "version": "v1",
        "ddn": {"url": cfg.ddn_url, "headers": headers},
        "artifacts": list(artifacts or []),
        "timezone": cfg.timezone,
        "interactions": [
            {"user_message": {"text": question}, "assistant_actions": []},
        ],
        "stream": stream,
    }


def decode_chunk(obj: Any) -> Chunk:
    """Validate one decoded JSON object into a typed chunk."""
    try:
        return CHUNK_ADAPTER.validate_python(obj)
    except ValidationError as e:
        kind = obj.get("type") if isinstance(obj, dict) else type(obj).__name__
        raise ChunkDecodeError(f"Unrecognised chunk (type={kind!r}): {e.error_count()} validation error(s)") from e


def parse_sse_line(line: str) -> Optional[Chunk]:
    """
    Decode one server-sent-event line.

    Returns None for lines that carry no chunk (blank keep-alives, comments,
    event/id fields, the [DONE] sentinel).
    """
    line = line.strip()
    if not line or line.startswith(":"):
        return None
    if not line.startswith("data:"):
        return None

    payload = line[len("data:"):].strip()
    if not payload or payload == "[DONE]":
        return None
    try:
        obj = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ChunkDecodeError(f"Malformed chunk JSON: {payload[:200]}") from e
    return decode_chunk(obj)


class PromptQLClient:
    """Thin HTTP client for the PromptQL natural-language query API."""

    def __init__(self, cfg: Optional[PromptQLConfig] = None, http: Optional[httpx.Client] = None):
        self.cfg = cfg or get_promptql_config()
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=httpx.Timeout(self.cfg.timeout_s))

    def __enter__(self) -> "PromptQLClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Api-Key {self.cfg.api_key}",
            "Content-Type": "application/json",
        }

    def query_stream(self, question: str, **kwargs: Any) -> Iterator[Chunk]:
        """
        Stream a question and yield chunks strictly in arrival order.

        The next line is read only after the consumer asks for the next chunk.
        Raises StreamError on non-2xx responses and transport failures.
        """
        body = build_query_request(self.cfg, question, stream=True, **kwargs)
        logger.info("Opening query stream")
        logger.debug("Query: %s", question)
        try:
            with self.http.stream("POST", self.cfg.api_url, json=body, headers=self._headers()) as resp:
                if resp.status_code >= 400:
                    resp.read()
                    raise StreamError(
                        f"PromptQL API {resp.status_code}: {resp.text[:500]}",
                        status_code=resp.status_code,
                    )
                n = 0
                for line in resp.iter_lines():
                    chunk = parse_sse_line(line)
                    if chunk is None:
                        continue
                    n += 1
                    yield chunk
                logger.info("Query stream ended after %s chunks", n)
        except httpx.HTTPError as e:
            raise StreamError(f"PromptQL stream failed: {e}") from e

    def query(self, question: str, **kwargs: Any) -> Dict[str, Any]:
        """Run a question without streaming and return the decoded response body."""
        body = build_query_request(self.cfg, question, stream=False, **kwargs)
        logger.info("Running non-streaming query")
        try:
            resp = self.http.post(self.cfg.api_url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise StreamError(f"PromptQL query failed: {e}") from e
        if resp.status_code >= 400:
            raise StreamError(f"PromptQL API {resp.status_code}: {resp.text[:500]}", status_code=resp.status_code)
        return resp.json()
