"""Tests for Matrix message formatter."""

import json
import re

import pytest

from matrix_alerter.alerter.formatter import (
    MatrixFormatter,
    escape_json_fragment,
    escape_markup,
)
from matrix_alerter.alerter.models import AlertEvent, ConditionResult, FormattedMessage

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def formatter() -> MatrixFormatter:
    """Create a formatter."""
    return MatrixFormatter()


@pytest.fixture
def failing_event() -> AlertEvent:
    """Create an event with a single failed condition."""
    return AlertEvent(
        endpoint_name="example",
        failure_threshold=3,
        condition_results=(ConditionResult(condition="[STATUS] == 200", success=False),),
    )


@pytest.fixture
def mixed_event() -> AlertEvent:
    """Create an event with a description and mixed condition results."""
    return AlertEvent(
        endpoint_name="api",
        endpoint_group="core",
        failure_threshold=4,
        success_threshold=5,
        description="Health check of the public API",
        condition_results=(
            ConditionResult(condition="[CONNECTED] == true", success=True),
            ConditionResult(condition="[STATUS] == 200", success=False),
            ConditionResult(condition="[CERTIFICATE_EXPIRATION] > 48h", success=True),
            ConditionResult(condition="[BODY].status == UP", success=False),
        ),
    )


# ============================================================================
# Helper Tests
# ============================================================================


class TestEscaping:
    """Tests for escaping helpers."""

    def test_plain_text_unchanged(self) -> None:
        """Test that ordinary text passes through."""
        assert escape_json_fragment("[STATUS] == 200") == "[STATUS] == 200"

    def test_json_special_characters(self) -> None:
        """Test quotes, backslashes and control characters."""
        assert escape_json_fragment('say "hi"') == 'say \\"hi\\"'
        assert escape_json_fragment("a\\b") == "a\\\\b"
        assert escape_json_fragment("line1\nline2") == "line1\\nline2"
        assert escape_json_fragment("tab\t") == "tab\\t"

    def test_non_ascii_kept(self) -> None:
        """Test that non-ASCII text is not turned into \\u escapes."""
        assert escape_json_fragment("café ✓") == "café ✓"

    def test_markup_escapes_html(self) -> None:
        """Test that markup escaping covers HTML and JSON."""
        assert escape_markup("[RESPONSE_TIME] < 500 & ok") == "[RESPONSE_TIME] &lt; 500 &amp; ok"
        assert escape_markup('"x"') == '\\"x\\"'


class TestDisplayName:
    """Tests for AlertEvent.display_name."""

    def test_without_group(self) -> None:
        """Test display name without group."""
        assert AlertEvent(endpoint_name="example").display_name == "example"

    def test_with_group(self) -> None:
        """Test display name with group."""
        event = AlertEvent(endpoint_name="example", endpoint_group="core")
        assert event.display_name == "core/example"


# ============================================================================
# Plaintext Body Tests
# ============================================================================


class TestPlaintextBody:
    """Tests for the plaintext body."""

    def test_triggered(self, formatter: MatrixFormatter, failing_event: AlertEvent) -> None:
        """Test the triggered plaintext body."""
        body = formatter.build_plaintext_body(failing_event, resolved=False)
        assert body == (
            "An alert for `example` has been triggered due to having failed "
            "3 time(s) in a row\\n✕ - [STATUS] == 200"
        )

    def test_resolved(self, formatter: MatrixFormatter) -> None:
        """Test the resolved plaintext body."""
        event = AlertEvent(
            endpoint_name="example",
            success_threshold=5,
            condition_results=(ConditionResult(condition="[STATUS] == 200", success=True),),
        )
        body = formatter.build_plaintext_body(event, resolved=True)
        assert body == (
            "An alert for `example` has been resolved after passing successfully "
            "5 time(s) in a row\\n✓ - [STATUS] == 200"
        )

    def test_description(self, formatter: MatrixFormatter, mixed_event: AlertEvent) -> None:
        """Test that the description follows the headline."""
        body = formatter.build_plaintext_body(mixed_event, resolved=False)
        assert body.startswith(
            "An alert for `core/api` has been triggered due to having failed 4 time(s) "
            "in a row\\nHealth check of the public API\\n✓ - [CONNECTED] == true"
        )

    def test_empty_description_omitted(self, formatter: MatrixFormatter) -> None:
        """Test that an empty description adds nothing."""
        event = AlertEvent(endpoint_name="example", description="")
        body = formatter.build_plaintext_body(event, resolved=False)
        assert body == (
            "An alert for `example` has been triggered due to having failed 3 time(s) in a row"
        )

    def test_no_real_newlines(self, formatter: MatrixFormatter, mixed_event: AlertEvent) -> None:
        """Test that line breaks are written as escape sequences."""
        body = formatter.build_plaintext_body(mixed_event, resolved=False)
        assert "\n" not in body
        assert body.count("\\n") == 5

    def test_special_characters_escaped(self, formatter: MatrixFormatter) -> None:
        """Test that user text is escaped so the body stays a valid JSON string."""
        event = AlertEvent(
            endpoint_name='my "api"',
            description="multi\nline",
            condition_results=(ConditionResult(condition='[BODY].name == "john"', success=True),),
        )
        body = formatter.build_plaintext_body(event, resolved=False)
        decoded = json.loads(f'"{body}"')
        assert decoded == (
            'An alert for `my "api"` has been triggered due to having failed 3 time(s) '
            'in a row\nmulti\nline\n✓ - [BODY].name == "john"'
        )


# ============================================================================
# Markup Body Tests
# ============================================================================


class TestMarkupBody:
    """Tests for the HTML body."""

    def test_triggered(self, formatter: MatrixFormatter, failing_event: AlertEvent) -> None:
        """Test the triggered HTML body."""
        body = formatter.build_markup_body(failing_event, resolved=False)
        assert body == (
            "<h3>An alert for <code>example</code> has been triggered due to having failed "
            "3 time(s) in a row</h3>"
            "\\n<h5>Condition results</h5>"
            "<ul><li>❌ - <code>[STATUS] == 200</code></li></ul>"
        )

    def test_resolved(self, formatter: MatrixFormatter) -> None:
        """Test the resolved headline."""
        event = AlertEvent(endpoint_name="example", success_threshold=5)
        body = formatter.build_markup_body(event, resolved=True)
        assert body.startswith(
            "<h3>An alert for <code>example</code> has been resolved after passing "
            "successfully 5 time(s) in a row</h3>"
        )

    def test_description_blockquote(
        self, formatter: MatrixFormatter, mixed_event: AlertEvent
    ) -> None:
        """Test that the description is rendered as a blockquote."""
        body = formatter.build_markup_body(mixed_event, resolved=False)
        assert "</h3>\\n<blockquote>Health check of the public API</blockquote>\\n<h5>" in body

    def test_no_conditions(self, formatter: MatrixFormatter) -> None:
        """Test that the list is still present without condition results."""
        body = formatter.build_markup_body(AlertEvent(endpoint_name="example"), resolved=False)
        assert body.endswith("\\n<h5>Condition results</h5><ul></ul>")

    def test_conditions_html_escaped(self, formatter: MatrixFormatter) -> None:
        """Test that comparison operators in conditions do not break the markup."""
        event = AlertEvent(
            endpoint_name="api",
            condition_results=(ConditionResult(condition="[RESPONSE_TIME] < 500", success=True),),
        )
        body = formatter.build_markup_body(event, resolved=False)
        assert "<li>✅ - <code>[RESPONSE_TIME] &lt; 500</code></li>" in body

    def test_description_markup_kept(self, formatter: MatrixFormatter) -> None:
        """Test that the description is inserted as written."""
        event = AlertEvent(endpoint_name="api", description='<b>db</b> & "cache"')
        body = formatter.build_markup_body(event, resolved=False)
        assert '<blockquote><b>db</b> & \\"cache\\"</blockquote>' in body

    def test_display_name_not_html_escaped(self, formatter: MatrixFormatter) -> None:
        """Test that the display name is only escaped for JSON."""
        event = AlertEvent(endpoint_name="a&b", endpoint_group="core")
        body = formatter.build_markup_body(event, resolved=False)
        assert "<code>core/a&b</code>" in body


# ============================================================================
# MatrixFormatter.format Tests
# ============================================================================


class TestFormat:
    """Tests for the combined format method."""

    def test_returns_formatted_message(
        self, formatter: MatrixFormatter, failing_event: AlertEvent
    ) -> None:
        """Test that both bodies are returned."""
        message = formatter.format(failing_event, resolved=False)
        assert isinstance(message, FormattedMessage)
        assert message.plaintext_body == formatter.build_plaintext_body(failing_event, False)
        assert message.markup_body == formatter.build_markup_body(failing_event, False)

    def test_deterministic(self, formatter: MatrixFormatter, mixed_event: AlertEvent) -> None:
        """Test that formatting the same event twice gives the same result."""
        assert formatter.format(mixed_event, True) == formatter.format(mixed_event, True)

    @pytest.mark.parametrize("resolved", [True, False])
    def test_bodies_are_parallel(
        self, formatter: MatrixFormatter, mixed_event: AlertEvent, resolved: bool
    ) -> None:
        """Test that both bodies list conditions in the same order and outcome."""
        message = formatter.format(mixed_event, resolved)

        plain = re.findall(r"([✓✕]) - ([^\\]+)", message.plaintext_body)
        markup = re.findall(r"<li>([✅❌]) - <code>(.*?)</code></li>", message.markup_body)

        assert [c for _, c in plain] == [r.condition for r in mixed_event.condition_results]
        assert [c for _, c in markup] == [r.condition for r in mixed_event.condition_results]
        assert [p == "✓" for p, _ in plain] == [m == "✅" for m, _ in markup]
        assert [p == "✓" for p, _ in plain] == [
            r.success for r in mixed_event.condition_results
        ]

    def test_headline_variant_shared(
        self, formatter: MatrixFormatter, mixed_event: AlertEvent
    ) -> None:
        """Test that both bodies use the same headline variant."""
        resolved = formatter.format(mixed_event, resolved=True)
        triggered = formatter.format(mixed_event, resolved=False)
        phrase = "has been resolved after passing successfully 5 time(s) in a row"
        assert phrase in resolved.plaintext_body
        assert phrase in resolved.markup_body
        phrase = "has been triggered due to having failed 4 time(s) in a row"
        assert phrase in triggered.plaintext_body
        assert phrase in triggered.markup_body
