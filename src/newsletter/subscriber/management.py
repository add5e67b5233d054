"""Subscriber management: commands, handler and list query.

Unsubscribed rows are kept for ``SUBSCRIBER_RETENTION_DAYS`` so a quick
re-subscribe restores them; ``PurgeInactiveSubscribers`` hard-deletes the
ones past that window.
"""

from datetime import UTC, datetime, timedelta

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from newsletter.domain import logger, newsletter
from newsletter.subscriber.subscriber import Subscriber, normalize_email
from shared.errors import ConflictError, NotFoundError
from shared.queries import fetch_all

SUBSCRIBER_RETENTION_DAYS = 30


@newsletter.command(part_of="Subscriber")
class Subscribe:
    email = String(required=True, max_length=254)
    full_name = String(max_length=120)


@newsletter.command(part_of="Subscriber")
class UpdateSubscriber:
    subscriber_id = Identifier(required=True)
    email = String(max_length=254)
    full_name = String(max_length=120)


@newsletter.command(part_of="Subscriber")
class DeactivateSubscriber:
    subscriber_id = Identifier(required=True)


@newsletter.command(part_of="Subscriber")
class RestoreSubscriber:
    subscriber_id = Identifier(required=True)


@newsletter.command(part_of="Subscriber")
class DeleteSubscriber:
    subscriber_id = Identifier(required=True)


@newsletter.command(part_of="Subscriber")
class PurgeInactiveSubscribers:
    retention_days = Integer(min_value=0, default=SUBSCRIBER_RETENTION_DAYS)
    as_of = DateTime()


def find_by_email(email) -> Subscriber | None:
    matches = current_domain.repository_for(Subscriber)._dao.query.filter(email=normalize_email(email)).all().items
    return matches[0] if matches else None


def _as_utc(moment):
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


def _load(subscriber_id) -> Subscriber:
    try:
        return current_domain.repository_for(Subscriber).get(subscriber_id)
    except ObjectNotFoundError:
        raise NotFoundError("SUBSCRIBER_NOT_FOUND", "Subscriber not found") from None


@newsletter.command_handler(part_of=Subscriber)
class SubscriberHandler:
    @handle(Subscribe)
    def subscribe(self, command):
        repo = current_domain.repository_for(Subscriber)
        subscriber = find_by_email(command.email)
        if subscriber is None:
            subscriber = Subscriber.register(command.email, command.full_name)
        else:
            subscriber.reactivate()
            if command.full_name:
                subscriber.update_details(full_name=command.full_name)
        repo.add(subscriber)
        return str(subscriber.id)

    @handle(UpdateSubscriber)
    def update_subscriber(self, command):
        subscriber = _load(command.subscriber_id)
        if command.email is not None:
            other = find_by_email(command.email)
            if other is not None and str(other.id) != str(subscriber.id):
                raise ConflictError("SUBSCRIBER_EXISTS", "Another subscriber already uses this email")
        subscriber.update_details(email=command.email, full_name=command.full_name)
        current_domain.repository_for(Subscriber).add(subscriber)

    @handle(DeactivateSubscriber)
    def deactivate_subscriber(self, command):
        subscriber = _load(command.subscriber_id)
        subscriber.deactivate()
        current_domain.repository_for(Subscriber).add(subscriber)

    @handle(RestoreSubscriber)
    def restore_subscriber(self, command):
        subscriber = _load(command.subscriber_id)
        subscriber.reactivate()
        current_domain.repository_for(Subscriber).add(subscriber)

    @handle(DeleteSubscriber)
    def delete_subscriber(self, command):
        subscriber = _load(command.subscriber_id)
        if subscriber.is_active:
            raise ConflictError("SUBSCRIBER_ACTIVE", "Deactivate the subscriber before deleting it")
        current_domain.repository_for(Subscriber)._dao.delete(subscriber)
        logger.info("Subscriber deleted", subscriber_id=str(subscriber.id))

    @handle(PurgeInactiveSubscribers)
    def purge_inactive(self, command):
        now = _as_utc(command.as_of or datetime.now(UTC))
        cutoff = now - timedelta(days=command.retention_days)

        dao = current_domain.repository_for(Subscriber)._dao
        expired = [
            subscriber
            for subscriber in fetch_all(dao.query.filter(is_active=False))
            if subscriber.unsubscribed_at is not None and _as_utc(subscriber.unsubscribed_at) <= cutoff
        ]
        for subscriber in expired:
            dao.delete(subscriber)

        logger.info("Inactive subscribers purged", deleted_count=len(expired), cutoff=cutoff.isoformat())
        return len(expired)


def list_subscribers(active=None) -> list[Subscriber]:
    query = current_domain.repository_for(Subscriber)._dao.query
    if active is not None:
        query = query.filter(is_active=active)
    return sorted(
        fetch_all(query),
        key=lambda s: s.created_at.timestamp() if s.created_at else 0.0,
        reverse=True,
    )


def get_active_subscriber(subscriber_id) -> Subscriber | None:
    try:
        subscriber = current_domain.repository_for(Subscriber).get(subscriber_id)
    except ObjectNotFoundError:
        return None
    return subscriber if subscriber.is_active else None
