"""Identity providers that scope session history."""

from .identity import IdentityProvider, LocalIdentityProvider, FirebaseIdentityProvider

__all__ = ["IdentityProvider", "LocalIdentityProvider", "FirebaseIdentityProvider"]
