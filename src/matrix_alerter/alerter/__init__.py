"""Alerting layer - Matrix room notification delivery."""

from matrix_alerter.alerter.dispatcher import MatrixDispatcher, generate_transaction_id
from matrix_alerter.alerter.exceptions import (
    ConfigurationInvalidError,
    DeliveryTransportError,
    MatrixAlerterError,
    RemoteRejectedError,
    RequestConstructionError,
)
from matrix_alerter.alerter.formatter import MatrixFormatter
from matrix_alerter.alerter.models import (
    AlertEvent,
    ConditionResult,
    FormattedMessage,
    ResolvedConfig,
)
from matrix_alerter.alerter.resolver import is_valid, resolve_config, validate

__all__ = [
    "AlertEvent",
    "ConditionResult",
    "ConfigurationInvalidError",
    "DeliveryTransportError",
    "FormattedMessage",
    "MatrixAlerterError",
    "MatrixDispatcher",
    "MatrixFormatter",
    "RemoteRejectedError",
    "RequestConstructionError",
    "ResolvedConfig",
    "generate_transaction_id",
    "is_valid",
    "resolve_config",
    "validate",
]
