"""Contract of the identity provider (SSO) collaborator."""

from typing import Protocol


class IdentityProvider(Protocol):
    """Resolves bearer tokens and provisions users.

    Implementations own user data; the catalog service only ever holds the
    returned identifiers.
    """

    async def parse_claims(self, token: str) -> str:
        """Resolve a bearer token to the identifier of its subject.

        Raises:
            UnauthorizedError: If the token is rejected.
        """
        ...

    async def create_user(self, name: str, email: str, password: str) -> str:
        """Create a user and return its identifier.

        Deduplication by email, when required, is the provider's concern.
        """
        ...
