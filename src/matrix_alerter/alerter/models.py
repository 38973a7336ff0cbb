"""Data models for the alerter module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of evaluating a single endpoint condition.

    Attributes:
        condition: The condition expression, e.g. ``[STATUS] == 200``.
        success: Whether the condition held.
    """

    condition: str
    success: bool


@dataclass(frozen=True)
class AlertEvent:
    """An alert raised (or resolved) for a monitored endpoint.

    Attributes:
        endpoint_name: Name of the monitored endpoint.
        endpoint_group: Group label of the endpoint, used to pick overrides.
        failure_threshold: Consecutive failures needed to trigger the alert.
        success_threshold: Consecutive successes needed to resolve it.
        description: Optional free-text description of the alert.
        condition_results: Condition results of the evaluation, in order.
    """

    endpoint_name: str
    endpoint_group: str = ""
    failure_threshold: int = 3
    success_threshold: int = 2
    description: str | None = None
    condition_results: tuple[ConditionResult, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        """Return ``group/name``, or just the name when there is no group."""
        if self.endpoint_group:
            return f"{self.endpoint_group}/{self.endpoint_name}"
        return self.endpoint_name


@dataclass(frozen=True)
class FormattedMessage:
    """A rendered alert message with parallel plaintext and HTML bodies."""

    plaintext_body: str
    markup_body: str


@dataclass(frozen=True)
class ResolvedConfig:
    """Effective destination for a single send."""

    homeserver_url: str
    access_token: str = field(repr=False)
    room_id: str
