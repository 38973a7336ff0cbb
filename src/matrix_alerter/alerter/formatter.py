"""Alert message formatter for Matrix rooms.

This module renders AlertEvent objects into the two bodies of a Matrix
``m.text`` message: a plaintext ``body`` and an HTML ``formatted_body``.

Both bodies are produced as JSON string fragments, ready to be placed
between the quotes of the request payload: interpolated text is escaped for
JSON and line breaks are written as the two-character sequence ``\\n``.
Condition expressions are also HTML-escaped in the HTML body, since they
commonly contain comparison operators; the display name and description
are inserted as written, so a description may carry its own markup.
"""

from __future__ import annotations

import html
import json

from matrix_alerter.alerter.models import AlertEvent, FormattedMessage

# Line break inside a JSON string value
NEWLINE = "\\n"

# Condition result markers
PLAIN_SUCCESS = "✓"
PLAIN_FAILURE = "✕"
HTML_SUCCESS = "✅"
HTML_FAILURE = "❌"


def escape_json_fragment(text: str) -> str:
    """Escape text for use inside a JSON string literal."""
    return json.dumps(text, ensure_ascii=False)[1:-1]


def escape_markup(text: str) -> str:
    """Escape text for use inside both HTML content and a JSON string literal."""
    return escape_json_fragment(html.escape(text, quote=False))


def build_headline(event: AlertEvent, name: str, resolved: bool) -> str:
    """Build the headline sentence around an already-rendered endpoint name."""
    if resolved:
        return (
            f"An alert for {name} has been resolved after passing successfully "
            f"{event.success_threshold} time(s) in a row"
        )
    return (
        f"An alert for {name} has been triggered due to having failed "
        f"{event.failure_threshold} time(s) in a row"
    )


class MatrixFormatter:
    """Formats AlertEvents into Matrix plaintext and HTML bodies."""

    def format(self, event: AlertEvent, resolved: bool) -> FormattedMessage:
        """Format an alert event.

        Args:
            event: The alert event to render.
            resolved: Whether the alert is being resolved rather than triggered.

        Returns:
            FormattedMessage with both bodies.
        """
        return FormattedMessage(
            plaintext_body=self.build_plaintext_body(event, resolved),
            markup_body=self.build_markup_body(event, resolved),
        )

    def build_plaintext_body(self, event: AlertEvent, resolved: bool) -> str:
        """Build the plaintext ``body``."""
        name = escape_json_fragment(event.display_name)
        parts = [build_headline(event, f"`{name}`", resolved)]

        if event.description:
            parts.append(NEWLINE + escape_json_fragment(event.description))

        for result in event.condition_results:
            prefix = PLAIN_SUCCESS if result.success else PLAIN_FAILURE
            parts.append(f"{NEWLINE}{prefix} - {escape_json_fragment(result.condition)}")

        return "".join(parts)

    def build_markup_body(self, event: AlertEvent, resolved: bool) -> str:
        """Build the HTML ``formatted_body``."""
        name = escape_json_fragment(event.display_name)
        parts = [f"<h3>{build_headline(event, f'<code>{name}</code>', resolved)}</h3>"]

        if event.description:
            description = escape_json_fragment(event.description)
            parts.append(f"{NEWLINE}<blockquote>{description}</blockquote>")

        parts.append(f"{NEWLINE}<h5>Condition results</h5><ul>")
        for result in event.condition_results:
            prefix = HTML_SUCCESS if result.success else HTML_FAILURE
            parts.append(f"<li>{prefix} - <code>{escape_markup(result.condition)}</code></li>")
        parts.append("</ul>")

        return "".join(parts)
