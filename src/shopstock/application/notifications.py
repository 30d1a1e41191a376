"""Port for telling operators that a product is running low."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shopstock.domain.service.inventory_service import LowStockAlert


class StockAlertNotifier(ABC):

    @abstractmethod
    def notify_low_stock(self, alert: LowStockAlert) -> None:
        """Deliver one low-stock alert. Must not raise for delivery errors."""
