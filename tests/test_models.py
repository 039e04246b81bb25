"""
Tests for the transcript, automation and credential models.

Tests cover:
- Timestamp normalization from every stored shape (and the fallback, incl. out-of-range values)
- ActionItem coercion (string done flags) and blank-title dropping
- TranscriptData immutability and display fallbacks
- Step config parsing (nested and flattened) and config errors
- Credential bundle connected / not-connected detection

Run with: pytest tests/test_models.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from meeting_export.errors import StepConfigError
from meeting_export.models import (
    ActionItem,
    Automation,
    CredentialBundle,
    HubSpotCredential,
    MondayStepConfig,
    NotionStepConfig,
    Step,
    StepType,
    TranscriptData,
    normalize_timestamp,
)

EXPECTED = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


# =============================================================================
# Timestamp normalization
# =============================================================================


class TestNormalizeTimestamp:
    """Every stored timestamp shape becomes an aware UTC datetime."""

    def test_seconds_nanoseconds_record(self):
        """Structured {seconds, nanoseconds} records are decoded."""
        assert normalize_timestamp({'seconds': 1768473000, 'nanoseconds': 0}) == EXPECTED

    def test_underscored_record(self):
        """Serialized records with _seconds/_nanoseconds are decoded."""
        value = {'_seconds': 1768473000, '_nanoseconds': 500_000_000}
        assert normalize_timestamp(value) == EXPECTED + timedelta(milliseconds=500)

    def test_epoch_milliseconds(self):
        """Integers are epoch milliseconds."""
        assert normalize_timestamp(1768473000000) == EXPECTED

    def test_numeric_string_milliseconds(self):
        """Numeric strings are epoch milliseconds too."""
        assert normalize_timestamp('1768473000000') == EXPECTED

    def test_iso_string(self):
        """ISO strings with a Z suffix are parsed."""
        assert normalize_timestamp('2026-01-15T10:30:00Z') == EXPECTED

    def test_iso_string_with_offset(self):
        """Offsets are converted to UTC."""
        assert normalize_timestamp('2026-01-15T12:30:00+02:00') == EXPECTED

    def test_naive_datetime_is_utc(self):
        """Naive datetimes are treated as UTC."""
        result = normalize_timestamp(datetime(2026, 1, 15, 10, 30))
        assert result == EXPECTED
        assert result.tzinfo is not None

    def test_unrecognized_falls_back_to_now(self):
        """Garbage never fails; it falls back to the provided 'now'."""
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert normalize_timestamp('not a date', now=now) == now
        assert normalize_timestamp(None, now=now) == now
        assert normalize_timestamp(True, now=now) == now

    @pytest.mark.parametrize('value', [
        {'seconds': 10**12},
        {'_seconds': -(10**13)},
        10**20,
        10**400,
        float('inf'),
        'inf',
        'nan',
        '1' + '0' * 30,
    ])
    def test_out_of_range_falls_back_to_now(self, value):
        """Known shapes outside the representable range fall back instead of raising."""
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert normalize_timestamp(value, now=now) == now


# =============================================================================
# ActionItem / TranscriptData
# =============================================================================


class TestActionItem:
    def test_text_alias_and_coercions(self):
        """Legacy 'text' key is accepted; description None becomes ''; done is bool."""
        item = ActionItem.model_validate({'text': '  Send deck ', 'description': None, 'done': 1})
        assert item.title == 'Send deck'
        assert item.description == ''
        assert item.done is True
        assert item.id

    @pytest.mark.parametrize('stored, expected', [
        ('false', False),
        ('False', False),
        ('0', False),
        ('', False),
        ('no', False),
        ('true', True),
        (' TRUE ', True),
        ('1', True),
        (0, False),
        (None, False),
    ])
    def test_done_string_forms(self, stored, expected):
        """Stored string flags are parsed, not truth-tested."""
        item = ActionItem.model_validate({'title': 'Ship v2', 'done': stored})
        assert item.done is expected

    def test_empty_title_rejected(self):
        """A blank title is invalid."""
        with pytest.raises(ValidationError):
            ActionItem.model_validate({'title': '   '})

    def test_frozen(self):
        """Action items cannot be mutated."""
        item = ActionItem(title='Ship v2')
        with pytest.raises(ValidationError):
            item.done = True


class TestTranscriptData:
    def test_from_document(self, transcript):
        """Stored document maps to typed fields."""
        assert transcript.id == 'mtg_001'
        assert transcript.timestamp == EXPECTED
        assert [i.title for i in transcript.action_items] == ['Ship v2', 'Email client']
        assert transcript.action_items[1].done is True
        assert transcript.attendees[0].name == 'Ben Carter'
        assert transcript.tags == ('roadmap',)

    def test_action_items_as_mapping(self):
        """Action items stored as a map keyed by id are accepted."""
        data = TranscriptData.from_document('m', {
            'timestamp': 1768473000000,
            'actionItems': {'x1': {'title': 'First'}, 'x2': {'title': 'Second', 'done': True}},
        })
        assert [(i.id, i.title) for i in data.action_items] == [('x1', 'First'), ('x2', 'Second')]

    def test_blank_items_dropped(self):
        """Items with blank titles are dropped instead of failing the transcript."""
        data = TranscriptData.from_document('m', {
            'timestamp': 1768473000000,
            'actionItems': [{'title': ''}, {'title': 'Keep me'}, {'description': 'no title'}],
        })
        assert [i.title for i in data.action_items] == ['Keep me']

    def test_string_attendees(self):
        """Attendees stored as bare emails become Attendee records."""
        data = TranscriptData.from_document('m', {'timestamp': 0, 'attendees': ['a@x.com']})
        assert data.attendees[0].email == 'a@x.com'
        assert data.attendees[0].name is None

    def test_display_name_fallback(self):
        """Missing names fall back to 'Untitled Meeting'."""
        data = TranscriptData.from_document('m', {'timestamp': 0, 'name': None})
        assert data.display_name == 'Untitled Meeting'
        assert data.has_notes is False

    def test_frozen(self, transcript):
        """Transcripts cannot be mutated."""
        with pytest.raises(ValidationError):
            transcript.name = 'Other'


# =============================================================================
# Steps and automations
# =============================================================================


class TestStep:
    def test_nested_config(self):
        """Config stored under 'config' is parsed into the type's model."""
        step = Step.from_document('s1', {
            'type': 'notion',
            'config': {'pageId': 'p1', 'exportNotes': False},
        })
        config = step.parse_config()
        assert isinstance(config, NotionStepConfig)
        assert config.page_id == 'p1'
        assert config.export_notes is False
        assert config.export_action_items is True

    def test_flattened_config(self):
        """Config fields stored directly on the step document are accepted."""
        step = Step.from_document('s2', {
            'type': 'monday',
            'board': 123,
            'group': 'topics',
            'order': 2,
            'createdAt': 'ignored',
        })
        config = step.parse_config()
        assert isinstance(config, MondayStepConfig)
        assert config.board == '123'
        assert step.order == 2

    def test_invalid_config_raises_step_config_error(self):
        """A config missing required fields is a StepConfigError."""
        step = Step.from_document('s3', {'type': 'slack', 'config': {}})
        with pytest.raises(StepConfigError) as exc_info:
            step.parse_config()
        assert exc_info.value.provider == 'slack'

    def test_unknown_type(self):
        """Unknown step types parse but have no StepType."""
        step = Step.from_document('s4', {'type': 'zapier'})
        assert step.step_type is None
        with pytest.raises(StepConfigError):
            step.parse_config()

    def test_known_types(self):
        assert Step(id='x', type='ai-insights').step_type is StepType.AI_INSIGHTS


class TestAutomation:
    def test_enabled_default(self):
        assert Automation.from_document('a1', {'name': 'Daily'}).enabled is True

    def test_disabled(self):
        assert Automation.from_document('a1', {'enabled': False}).enabled is False


# =============================================================================
# Credentials
# =============================================================================


class TestCredentialBundle:
    def test_connected_and_missing(self):
        """Records without an access token count as not connected."""
        bundle = CredentialBundle.from_user_document('u', {
            'notionIntegration': {'accessToken': 'tok'},
            'slackIntegration': {'teamId': 'T1'},
        })
        assert bundle.is_connected(StepType.NOTION)
        assert not bundle.is_connected(StepType.SLACK)
        assert not bundle.is_connected(StepType.HUBSPOT)

    def test_legacy_keys(self):
        """Legacy 'monday' / 'salesforce' fields are still read."""
        bundle = CredentialBundle.from_user_document('u', {
            'monday': {'accessToken': 'm'},
            'salesforce': {'accessToken': 's', 'instanceUrl': 'https://x.my.salesforce.com'},
        })
        assert bundle.raw(StepType.MONDAY) == {'accessToken': 'm'}
        assert bundle.is_connected(StepType.SALESFORCE)


class TestHubSpotCredential:
    def test_expires_within(self):
        """Refresh window is now >= expiresAt - margin."""
        now = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
        credential = HubSpotCredential.model_validate({
            'accessToken': 'a',
            'refreshToken': 'r',
            'expiresAt': (now + timedelta(minutes=2)).isoformat(),
        })
        assert credential.expires_within(300, now=now) is True
        assert credential.expires_within(60, now=now) is False

    def test_out_of_range_expiry_is_parsed(self):
        """An unrepresentable expiresAt degrades to 'now' rather than failing validation."""
        credential = HubSpotCredential.model_validate({
            'accessToken': 'a',
            'refreshToken': 'r',
            'expiresAt': {'seconds': 10**12},
        })
        assert credential.expires_at.tzinfo is not None
        assert credential.expires_within(300) is True

    @pytest.mark.parametrize('offset_seconds, expected', [(300, True), (301, False)])
    def test_margin_boundary_is_inclusive(self, offset_seconds, expected):
        """Exactly at expiresAt - margin refreshes; one second earlier does not."""
        now = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
        credential = HubSpotCredential.model_validate({
            'accessToken': 'a',
            'refreshToken': 'r',
            'expiresAt': (now + timedelta(seconds=offset_seconds)).isoformat(),
        })
        assert credential.expires_within(300, now=now) is expected


class TestAutomationTimestamps:
    def test_out_of_range_created_at(self):
        """createdAt outside the representable range still loads."""
        automation = Automation.from_document('a1', {'createdAt': {'seconds': 10**12}})
        assert automation.created_at is not None
        assert automation.enabled is True
