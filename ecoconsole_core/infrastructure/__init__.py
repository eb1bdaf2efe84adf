"""Infrastructure components for EcoConsole.

Clients for the external services the console depends on:
- Identity provider (auth admin API)
- Generative copy API
"""

from ecoconsole_core.infrastructure.copywriter import (
    CopywriterClient,
    CopywriterConfig,
    CopywriterError,
    MissionSuggestion,
)
from ecoconsole_core.infrastructure.identity_provider import (
    IdentityProviderClient,
    IdentityProviderError,
    IdentityUser,
)

__all__ = [
    "CopywriterClient",
    "CopywriterConfig",
    "CopywriterError",
    "MissionSuggestion",
    "IdentityProviderClient",
    "IdentityProviderError",
    "IdentityUser",
]
