from typing import Optional

from fastapi import Request

UNKNOWN_IDENTITY = "unknown"


class IdentityResolver:
    """
    Maps an inbound request to a caller identity.

    Precedence: the ``user_id`` query parameter, then the first
    ``X-Forwarded-For`` hop, then the socket peer address.
    """

    def __init__(self, query_param: str = "user_id", forwarded_header: str = "x-forwarded-for"):
        self.query_param = query_param
        self.forwarded_header = forwarded_header

    def client_ip(self, request: Request) -> str:
        forwarded = request.headers.get(self.forwarded_header)
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
        if request.client and request.client.host:
            return request.client.host
        return UNKNOWN_IDENTITY

    def resolve(self, request: Request) -> str:
        user_id: Optional[str] = request.query_params.get(self.query_param)
        if user_id and user_id.strip():
            return user_id.strip()
        return self.client_ip(request)
