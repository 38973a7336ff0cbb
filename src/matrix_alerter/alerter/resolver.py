"""Destination resolution for the Matrix provider.

Picks the homeserver, access token and room for an endpoint group, and
checks a provider configuration for validity at load time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from matrix_alerter.alerter.exceptions import ConfigurationInvalidError
from matrix_alerter.alerter.models import ResolvedConfig

if TYPE_CHECKING:
    from matrix_alerter.config import ProviderState

DEFAULT_HOMESERVER_URL = "https://matrix-client.matrix.org"


def resolve_config(state: ProviderState, group: str) -> ResolvedConfig:
    """Return the effective destination for an endpoint group.

    The first override whose group label equals ``group`` wins; otherwise the
    provider's default destination is used. An empty homeserver URL is
    replaced with :data:`DEFAULT_HOMESERVER_URL`.

    Args:
        state: Provider configuration.
        group: Group label of the endpoint being alerted on.

    Returns:
        The resolved destination.
    """
    homeserver_url = state.homeserver_url
    access_token = state.access_token.get_secret_value()
    room_id = state.room_id

    for override in state.overrides:
        if override.group == group:
            homeserver_url = override.homeserver_url
            access_token = override.access_token.get_secret_value()
            room_id = override.room_id
            break

    return ResolvedConfig(
        homeserver_url=homeserver_url or DEFAULT_HOMESERVER_URL,
        access_token=access_token,
        room_id=room_id,
    )


def _find_problem(state: ProviderState) -> str | None:
    """Return a description of the first invalid setting, or None."""
    registered_groups: set[str] = set()
    for index, override in enumerate(state.overrides):
        if override.group in registered_groups:
            return f"duplicate override group {override.group!r}"
        if not override.group:
            return f"override #{index} has no group"
        if not override.access_token.get_secret_value():
            return f"override {override.group!r} has no access-token"
        if not override.room_id:
            return f"override {override.group!r} has no internal-room-id"
        registered_groups.add(override.group)

    if not state.access_token.get_secret_value():
        return "access-token is required"
    if not state.room_id:
        return "internal-room-id is required"
    return None


def is_valid(state: ProviderState) -> bool:
    """Check whether a provider configuration is usable."""
    return _find_problem(state) is None


def validate(state: ProviderState) -> None:
    """Raise if a provider configuration is not usable.

    Raises:
        ConfigurationInvalidError: Naming the first problem found.
    """
    problem = _find_problem(state)
    if problem is not None:
        raise ConfigurationInvalidError(f"invalid matrix provider configuration: {problem}")
