import pytest
from protean import current_domain


@pytest.fixture(scope="session")
def _newsletter_domain():
    from newsletter.domain import newsletter

    return newsletter


@pytest.fixture(autouse=True)
def run_around_tests(_newsletter_domain):
    """Push domain context before each test, reset data and adapters after."""
    from newsletter.channel import reset_email_adapter

    ctx = _newsletter_domain.domain_context()
    ctx.push()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()

    reset_email_adapter()
    ctx.pop()


@pytest.fixture()
def fake_email():
    from newsletter.channel import set_email_adapter
    from newsletter.channel.fake_email import FakeEmailAdapter

    adapter = FakeEmailAdapter()
    set_email_adapter(adapter)
    return adapter


@pytest.fixture()
def make_subscriber():
    from newsletter.subscriber.subscriber import Subscriber

    def _make(email, full_name=None, is_active=True):
        subscriber = Subscriber.register(email, full_name)
        if not is_active:
            subscriber.deactivate()
        current_domain.repository_for(Subscriber).add(subscriber)
        return subscriber

    return _make
