from datetime import UTC, datetime, timedelta

import pytest
from newsletter.subscriber.management import (
    DeactivateSubscriber,
    DeleteSubscriber,
    PurgeInactiveSubscribers,
    RestoreSubscriber,
    Subscribe,
    UpdateSubscriber,
    find_by_email,
    get_active_subscriber,
    list_subscribers,
)
from newsletter.subscriber.subscriber import Subscriber
from protean import current_domain
from shared.errors import ConflictError, NotFoundError


def _process(command):
    return current_domain.process(command, asynchronous=False)


def test_subscribe_creates_subscriber():
    subscriber_id = _process(Subscribe(email="Malee@Example.com", full_name="Malee"))

    subscriber = current_domain.repository_for(Subscriber).get(subscriber_id)
    assert subscriber.email == "malee@example.com"
    assert subscriber.is_active


def test_subscribing_again_reactivates_same_row(make_subscriber):
    existing = make_subscriber("malee@example.com", is_active=False)

    subscriber_id = _process(Subscribe(email="MALEE@example.com", full_name="Malee S."))

    assert subscriber_id == str(existing.id)
    subscriber = find_by_email("malee@example.com")
    assert subscriber.is_active
    assert subscriber.full_name == "Malee S."
    assert len(list_subscribers()) == 1


def test_update_email(make_subscriber):
    subscriber = make_subscriber("old@example.com")
    _process(UpdateSubscriber(subscriber_id=str(subscriber.id), email="New@example.com"))
    assert find_by_email("new@example.com") is not None
    assert find_by_email("old@example.com") is None


def test_update_to_taken_email(make_subscriber):
    make_subscriber("taken@example.com")
    subscriber = make_subscriber("mine@example.com")
    with pytest.raises(ConflictError) as exc:
        _process(UpdateSubscriber(subscriber_id=str(subscriber.id), email="taken@example.com"))
    assert exc.value.code == "SUBSCRIBER_EXISTS"


def test_deactivate_and_restore(make_subscriber):
    subscriber = make_subscriber("a@example.com")

    _process(DeactivateSubscriber(subscriber_id=str(subscriber.id)))
    assert get_active_subscriber(str(subscriber.id)) is None
    assert [s.email for s in list_subscribers(active=False)] == ["a@example.com"]

    _process(RestoreSubscriber(subscriber_id=str(subscriber.id)))
    assert get_active_subscriber(str(subscriber.id)) is not None


def test_delete_requires_inactive(make_subscriber):
    subscriber = make_subscriber("a@example.com")
    with pytest.raises(ConflictError) as exc:
        _process(DeleteSubscriber(subscriber_id=str(subscriber.id)))
    assert exc.value.code == "SUBSCRIBER_ACTIVE"

    _process(DeactivateSubscriber(subscriber_id=str(subscriber.id)))
    _process(DeleteSubscriber(subscriber_id=str(subscriber.id)))
    assert list_subscribers() == []


def test_unknown_subscriber():
    with pytest.raises(NotFoundError) as exc:
        _process(RestoreSubscriber(subscriber_id="missing"))
    assert exc.value.code == "SUBSCRIBER_NOT_FOUND"


def test_list_filters_by_activity(make_subscriber):
    make_subscriber("a@example.com")
    make_subscriber("b@example.com", is_active=False)
    assert [s.email for s in list_subscribers(active=True)] == ["a@example.com"]
    assert len(list_subscribers()) == 2


class TestPurgeInactiveSubscribers:
    NOW = datetime(2026, 6, 30, 12, 0, tzinfo=UTC)

    @pytest.fixture()
    def unsubscribed(self, make_subscriber):
        def _make(email, days_ago):
            subscriber = make_subscriber(email, is_active=False)
            subscriber.unsubscribed_at = self.NOW - timedelta(days=days_ago)
            current_domain.repository_for(Subscriber).add(subscriber)
            return subscriber

        return _make

    def test_deletes_only_subscribers_past_retention(self, make_subscriber, unsubscribed):
        unsubscribed("old@example.com", days_ago=31)
        unsubscribed("edge@example.com", days_ago=30)
        unsubscribed("recent@example.com", days_ago=29)
        make_subscriber("active@example.com")

        deleted = _process(PurgeInactiveSubscribers(as_of=self.NOW))

        assert deleted == 2
        assert find_by_email("old@example.com") is None
        assert find_by_email("edge@example.com") is None
        assert find_by_email("recent@example.com") is not None
        assert find_by_email("active@example.com").is_active

    def test_custom_retention_window(self, unsubscribed):
        unsubscribed("week@example.com", days_ago=8)

        assert _process(PurgeInactiveSubscribers(as_of=self.NOW, retention_days=10)) == 0
        assert _process(PurgeInactiveSubscribers(as_of=self.NOW, retention_days=7)) == 1

    def test_nothing_to_purge(self, make_subscriber):
        make_subscriber("active@example.com")
        assert _process(PurgeInactiveSubscribers()) == 0
