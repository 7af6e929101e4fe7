"""Authentication: access tokens, refresh sessions and their transports.

Submodules are imported directly (``boardauth.core.auth.tokens`` and
so on); only the middleware is re-exported here.
"""

from boardauth.core.auth.middleware import IdentityMiddleware, RequestIdMiddleware


__all__ = [
    "IdentityMiddleware",
    "RequestIdMiddleware",
]
