"""
Cache invalidation signals
Analytics aggregations are dropped whenever the rows they summarize change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import invalidate_analytics_cache

logger = logging.getLogger(__name__)

ANALYTICS_SOURCE_MODELS = {
    'Order', 'OrderItem', 'OrderPayment', 'DeliveryDispatch',
    'Contribution', 'Income', 'Expense',
    'RawMaterial', 'ProcessedGood', 'StockMovement', 'AnalyticsTarget',
}


@receiver([post_save, post_delete])
def invalidate_analytics_on_change(sender, instance, **kwargs):
    """Invalidate analytics cache after a source row is committed"""
    if sender.__name__ not in ANALYTICS_SOURCE_MODELS:
        return
    logger.debug(f"{sender.__name__} changed; analytics cache will be invalidated on commit")
    transaction.on_commit(invalidate_analytics_cache)
