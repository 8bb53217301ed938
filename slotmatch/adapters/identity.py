"""
Identity provider adapters.
"""

from typing import Optional

from ..domain.exceptions import UnauthenticatedError


class StaticIdentityProvider:
    """
    Identity provider that always resolves to one configured owner.

    Used by the CLI (the owner comes from the config file or ``--as``) and by
    tests. With no owner configured every call is rejected as unauthenticated.
    """

    def __init__(self, owner_id: Optional[str] = None):
        self.owner_id = owner_id

    async def resolve_caller(self) -> str:
        if not self.owner_id:
            raise UnauthenticatedError("Not authenticated")
        return self.owner_id
