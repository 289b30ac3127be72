"""
Caching for the payment reminder management list.

Only the serialized "manage all" list is cached. The active-notice list is
always computed from the database, since it depends on the session and on
today's date.
"""
from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .models import PaymentReminder

logger = logging.getLogger(__name__)

REMINDER_LIST_KEY_PREFIX = 'reminders:list:'
REMINDER_LIST_VERSION_KEY = 'reminders:list_version'
REMINDER_LIST_CACHE_TTL = 300  # 5 minutes


def _list_version():
    version = cache.get(REMINDER_LIST_VERSION_KEY)
    if version is None:
        version = 1
        cache.set(REMINDER_LIST_VERSION_KEY, version, None)
    return version


def get_reminder_list_cache_key(*filters) -> str:
    """Cache key for one filtered view of the reminder list"""
    filter_key = ':'.join(str(f) for f in filters) or 'all'
    return f"{REMINDER_LIST_KEY_PREFIX}v{_list_version()}:{filter_key}"


def get_cached_reminder_list(cache_key):
    data = cache.get(cache_key)
    if data is not None:
        logger.debug(f"Cache HIT for reminder list: {cache_key}")
    else:
        logger.debug(f"Cache MISS for reminder list: {cache_key}")
    return data


def cache_reminder_list(cache_key, data, ttl: int = None):
    cache.set(cache_key, data, ttl or REMINDER_LIST_CACHE_TTL)


def invalidate_reminder_list_cache():
    """Drop every cached reminder list by moving to a new key version"""
    try:
        cache.incr(REMINDER_LIST_VERSION_KEY)
    except ValueError:
        cache.set(REMINDER_LIST_VERSION_KEY, 2, None)
    logger.debug("Invalidated payment reminder list cache")


@receiver(post_save, sender=PaymentReminder)
@receiver(post_delete, sender=PaymentReminder)
def reminder_changed(sender, instance, **kwargs):
    invalidate_reminder_list_cache()
