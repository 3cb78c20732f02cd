from django.test import SimpleTestCase, TestCase

from notifications.emitters import CollectingEmitter, LoggingEmitter, safe_emit
from notifications.events import LowStock, ProductAdded, SaleCompleted, StockDepleted, event_to_dict
from notifications.models import MonitoringSettings


class BrokenEmitter:
    def emit(self, event):
        raise RuntimeError("socket closed")


class EventTests(SimpleTestCase):
    def test_event_rendering(self):
        event = LowStock(product_id="p1", product_name="Kopi", remaining=3)

        self.assertEqual(
            event_to_dict(event),
            {
                "kind": "low_stock",
                "level": "warning",
                "title": "Low stock",
                "message": "Kopi has 3 left",
                "data": {"product_id": "p1", "product_name": "Kopi", "remaining": 3},
            },
        )

    def test_sale_completed_formats_rupiah(self):
        event = SaleCompleted(total_amount=1250000, payment_method="qris")
        self.assertEqual(event.message, "Rp 1.250.000 paid by qris")

    def test_levels(self):
        self.assertEqual(StockDepleted(product_id="p", product_name="x").level, "error")
        self.assertEqual(ProductAdded(product_id="p", product_name="x").level, "info")


class EmitterTests(SimpleTestCase):
    """
    GUARANTEES:
    - Events are kept in emission order
    - A failing delivery is logged and never raised to the caller
    """

    def test_collecting_emitter_keeps_order(self):
        emitter = CollectingEmitter()
        first = StockDepleted(product_id="p1", product_name="Gula")
        second = SaleCompleted(total_amount=5000, payment_method="cash")

        emitter.emit(first)
        emitter.emit(second)

        self.assertEqual(emitter.events, [first, second])
        self.assertEqual([d["kind"] for d in emitter.as_dicts()], ["stock_depleted", "sale_completed"])

    def test_collecting_emitter_survives_broken_target(self):
        emitter = CollectingEmitter(forward_to=BrokenEmitter())

        with self.assertLogs("notifications.emitters", level="ERROR"):
            emitter.emit(SaleCompleted(total_amount=1, payment_method="cash"))

        self.assertEqual(len(emitter.events), 1)

    def test_safe_emit_swallows_delivery_errors(self):
        with self.assertLogs("notifications.emitters", level="ERROR"):
            safe_emit(BrokenEmitter(), ProductAdded(product_id="p", product_name="Kopi"))

    def test_logging_emitter_levels(self):
        with self.assertLogs("notifications.emitters", level="INFO") as logs:
            LoggingEmitter().emit(StockDepleted(product_id="p1", product_name="Gula"))
            LoggingEmitter().emit(ProductAdded(product_id="p2", product_name="Kopi"))

        self.assertEqual(
            logs.output,
            [
                "WARNING:notifications.emitters:Gula is out of stock",
                "INFO:notifications.emitters:Kopi was added to the catalog",
            ],
        )


class MonitoringSettingsTests(TestCase):
    def test_enabled_by_default(self):
        self.assertTrue(MonitoringSettings.load().stock_monitoring_enabled)

    def test_single_row(self):
        MonitoringSettings.set_enabled(False)
        MonitoringSettings.set_enabled(True)
        MonitoringSettings.set_enabled(True)

        self.assertEqual(MonitoringSettings.objects.count(), 1)
        self.assertTrue(MonitoringSettings.load().stock_monitoring_enabled)
