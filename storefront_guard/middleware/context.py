"""
Request Context
===============
Framework-neutral view of an inbound request, shared by all pipeline stages.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote_plus

from starlette.requests import Request

from ..audit import RequestInfo

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_client_ip(headers: Mapping[str, str], peer: Optional[str], trust_proxy: bool = True) -> Optional[str]:
    """
    Extract the client IP used for throttling keys and audit records.

    With ``trust_proxy`` the leftmost X-Forwarded-For hop wins. That value is
    client-controlled unless a proxy in front overwrites the header, so a
    directly exposed service must run with ``trust_proxy=False`` or clients
    can rotate the header to dodge the rate limiter and the lockout.
    """
    if trust_proxy:
        forwarded = headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    return peer


@dataclass
class RequestContext:
    """Request surface seen by the security stages."""
    method: str
    path: str
    query_string: str = ""
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)  # Lowercase names
    cookies: Dict[str, str] = field(default_factory=dict)
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    user_id: Optional[str] = None
    # Headers and cookies stages want on the final response
    response_headers: Dict[str, str] = field(default_factory=dict)
    response_cookies: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    async def from_request(cls, request: Request, trust_proxy: bool = True) -> "RequestContext":
        headers = {name.lower(): value for name, value in request.headers.items()}
        peer = request.client.host if request.client else None
        return cls(
            method=request.method.upper(),
            path=request.url.path,
            query_string=request.url.query,
            body=await request.body(),
            headers=headers,
            cookies=dict(request.cookies),
            client_ip=get_client_ip(headers, peer, trust_proxy),
            user_agent=headers.get("user-agent"),
        )

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";")[0].strip().lower()

    @property
    def serialized_body(self) -> str:
        """Body as text; form bodies are URL-decoded."""
        if not self.body:
            return ""
        text = self.body.decode("utf-8", errors="replace")
        if self.content_type == FORM_CONTENT_TYPE:
            return unquote_plus(text)
        return text

    def request_info(self) -> RequestInfo:
        return RequestInfo(
            method=self.method,
            path=self.path,
            ip=self.client_ip or "unknown",
            user_agent=self.user_agent,
            user_id=self.user_id,
        )
