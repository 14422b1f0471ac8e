#!/usr/bin/env python3
"""Tests for push channels and notification fan-out."""
import logging
from unittest import mock

import pytest
import requests

from engine import ExpoPushChannel, LogPushChannel, Notifier, PushChannel
from models import Alert, AlertKind
from store import InMemoryRecordStore


class RecordingChannel(PushChannel):
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, token, title, body):
        if token in self.fail_for:
            raise requests.ConnectionError("push service unreachable")
        self.sent.append((token, title, body))


def make_store():
    return InMemoryRecordStore(
        {
            "profiles": [
                {"id": "a1", "role": "admin", "expo_push_token": "ExponentPushToken[admin1]"},
                {"id": "a2", "role": "admin", "expo_push_token": "ExponentPushToken[admin2]"},
                {"id": "a3", "role": "admin", "expo_push_token": None},
                {"id": "d1", "role": "driver", "expo_push_token": "ExponentPushToken[driver1]"},
                {"id": "d2", "role": "driver", "expo_push_token": None},
            ]
        }
    )


def alert(kind, driver_id=None):
    return Alert("al1", "v1", kind, "Something happened", driver_id=driver_id)


class TestAudience:
    """Tests for Notifier.audience."""

    def test_admins_with_tokens_only(self):
        notifier = Notifier(make_store(), RecordingChannel())
        assert notifier.admin_tokens() == ["ExponentPushToken[admin1]", "ExponentPushToken[admin2]"]

    @pytest.mark.parametrize(
        "kind", [AlertKind.CT_EXPIRY, AlertKind.MAINTENANCE_DUE, AlertKind.REPLACEMENT_ENDING]
    )
    def test_driver_added_for_driver_relevant_kinds(self, kind):
        notifier = Notifier(make_store(), RecordingChannel())
        assert "ExponentPushToken[driver1]" in notifier.audience(alert(kind, "d1"))

    @pytest.mark.parametrize(
        "kind", [AlertKind.HIGH_CONSUMPTION, AlertKind.INCIDENT, AlertKind.NO_FILL, AlertKind.MONTHLY_REPORT]
    )
    def test_driver_not_added_for_admin_kinds(self, kind):
        notifier = Notifier(make_store(), RecordingChannel())
        assert "ExponentPushToken[driver1]" not in notifier.audience(alert(kind, "d1"))

    def test_driver_without_token_skipped(self):
        notifier = Notifier(make_store(), RecordingChannel())
        assert len(notifier.audience(alert(AlertKind.CT_EXPIRY, "d2"))) == 2

    def test_no_assigned_driver(self):
        notifier = Notifier(make_store(), RecordingChannel())
        assert len(notifier.audience(alert(AlertKind.CT_EXPIRY))) == 2


class TestDispatch:
    """Tests for Notifier.dispatch."""

    def test_sends_title_and_message(self):
        channel = RecordingChannel()
        delivered = Notifier(make_store(), channel).dispatch(alert(AlertKind.CT_EXPIRY, "d1"))
        assert delivered == 3
        assert channel.sent[0] == ("ExponentPushToken[admin1]", AlertKind.CT_EXPIRY.title, "Something happened")

    def test_failure_does_not_stop_others(self):
        channel = RecordingChannel(fail_for={"ExponentPushToken[admin1]"})
        delivered = Notifier(make_store(), channel).dispatch(alert(AlertKind.INCIDENT))
        assert delivered == 1
        assert [s[0] for s in channel.sent] == ["ExponentPushToken[admin2]"]


class TestExpoPushChannel:
    """Tests for ExpoPushChannel."""

    def test_posts_message(self):
        session = mock.Mock()
        channel = ExpoPushChannel("https://push.example/send", timeout=5, session=session)
        channel.send("ExponentPushToken[x]", "Title", "Body")
        session.post.assert_called_once_with(
            "https://push.example/send",
            json={"to": "ExponentPushToken[x]", "title": "Title", "body": "Body", "sound": "default"},
            timeout=5,
        )
        session.post.return_value.raise_for_status.assert_called_once()

    def test_empty_token_not_sent(self):
        session = mock.Mock()
        ExpoPushChannel(session=session).send("", "Title", "Body")
        session.post.assert_not_called()

    def test_http_error_propagates(self):
        session = mock.Mock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("502")
        with pytest.raises(requests.HTTPError):
            ExpoPushChannel(session=session).send("ExponentPushToken[x]", "Title", "Body")


class TestLogPushChannel:
    """Tests for LogPushChannel."""

    def test_records_instead_of_sending(self, caplog):
        caplog.set_level(logging.INFO, logger="fleetwatch.engine.notify")
        channel = LogPushChannel()
        channel.send("ExponentPushToken[x]", "Title", "Body")
        channel.send("", "Title", "Body")
        assert channel.sent == [("ExponentPushToken[x]", "Title", "Body")]
        assert "Push (not sent)" in caplog.text
