"""Low-stock notifier that writes alerts to the application log."""

from __future__ import annotations

import logging

from shopstock.application.notifications import StockAlertNotifier
from shopstock.domain.service.inventory_service import LowStockAlert

logger = logging.getLogger(__name__)


class LoggingStockAlertNotifier(StockAlertNotifier):

    def notify_low_stock(self, alert: LowStockAlert) -> None:
        logger.warning(
            "Low stock alert: %s (%s) has %d available, threshold %d",
            alert.product_name,
            alert.product_id,
            alert.available_stock,
            alert.threshold,
        )
