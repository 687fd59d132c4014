"""
Tests for the "New Order Received" farmer notifications.

An order referencing farmers {A, B, A, C} must notify A, B and C once each.
"""

import pytest

from marketplace.channels import MockPushChannel
from marketplace.exceptions import InvalidEventError
from marketplace.models import Order
from triggers.dispatcher import Dispatcher, Outcome
from triggers.events import order_created
from triggers.notifiers import (
    OrderCreatedNotifier,
    farmer_ids_for,
    order_placed_payload,
)


@pytest.fixture
def notifier(dispatcher: Dispatcher) -> OrderCreatedNotifier:
    return OrderCreatedNotifier(dispatcher)


class TestPlanning:
    """Tests for the pure planning functions."""

    def test_farmer_ids_collapse_duplicates(self, multi_farmer_order):
        order = Order.from_snapshot("ord-100", multi_farmer_order)

        assert farmer_ids_for(order) == ["user-f01", "user-f02", "user-f03"]

    def test_items_without_farmer_are_ignored(self, caplog):
        order = Order.from_snapshot("ord-1", {
            "items": [{"productId": "prod-x"}, {"farmerId": "user-f02"}],
        })

        assert farmer_ids_for(order) == ["user-f02"]
        assert any("without farmerId" in r.getMessage() for r in caplog.records)

    def test_order_placed_payload(self):
        payload = order_placed_payload("ord-9", "tok-1")

        assert payload.title == "New Order Received"
        assert payload.body == "Order #ord-9 includes your products!"
        assert payload.data == {"type": "order_placed", "orderId": "ord-9"}
        assert payload.token == "tok-1"

    def test_plan_has_one_request_per_farmer(self, notifier, multi_farmer_order):
        order = Order.from_snapshot("ord-100", multi_farmer_order)

        requests = notifier.plan(order)

        assert [r.user_id for r in requests] == ["user-f01", "user-f02", "user-f03"]
        assert requests[0].build_payload("tok-x").data["orderId"] == "ord-100"


class TestOrderCreatedNotifier:
    """Tests for handling orders.created events."""

    def test_one_notification_per_distinct_farmer(
        self, notifier, channel: MockPushChannel, multi_farmer_order, amara_token, ben_token, chen_token
    ):
        report = notifier.handle(order_created("ord-100", multi_farmer_order))

        assert channel.get_sent_count() == 3
        assert len(channel.find_messages_to(amara_token)) == 1
        assert len(channel.find_messages_to(ben_token)) == 1
        assert len(channel.find_messages_to(chen_token)) == 1
        assert report.sent_count == 3

    def test_payload_content(self, notifier, channel: MockPushChannel, multi_farmer_order, amara_token):
        notifier.handle(order_created("ord-100", multi_farmer_order))

        msg = channel.find_message_to(amara_token)
        assert msg.title == "New Order Received"
        assert msg.body == "Order #ord-100 includes your products!"
        assert msg.data == {"type": "order_placed", "orderId": "ord-100"}

    def test_farmer_without_token_is_skipped(self, notifier, channel: MockPushChannel, amara_token):
        """Test that a farmer with no token gets nothing and nothing raises."""
        report = notifier.handle(order_created("ord-101", {
            "orderId": "ord-101",
            "items": [{"farmerId": "user-f04"}, {"farmerId": "user-f01"}],
        }))

        assert channel.get_sent_count() == 1
        assert channel.find_message_to(amara_token) is not None
        assert report.result_for("user-f04").outcome == Outcome.SKIPPED_NO_TOKEN

    def test_empty_items_sends_nothing(self, notifier, channel: MockPushChannel):
        report = notifier.handle(order_created("ord-102", {"orderId": "ord-102", "items": []}))

        assert channel.get_sent_count() == 0
        assert report.results == []

    def test_missing_items_sends_nothing(self, notifier, channel: MockPushChannel):
        report = notifier.handle(order_created("ord-103", {"orderId": "ord-103"}))

        assert channel.get_sent_count() == 0
        assert report.results == []

    def test_body_uses_document_id_when_order_id_missing(self, notifier, channel: MockPushChannel, amara_token):
        notifier.handle(order_created("doc-77", {"items": [{"farmerId": "user-f01"}]}))

        assert channel.find_message_to(amara_token).body == "Order #doc-77 includes your products!"

    def test_failure_for_one_farmer_does_not_block_others(
        self, flaky_store_factory, multi_farmer_order, ben_token, chen_token
    ):
        """Test that a lookup failure and a send failure still let the third farmer through."""
        store = flaky_store_factory("user-f01")
        channel = MockPushChannel(failing_tokens={ben_token})
        notifier = OrderCreatedNotifier(Dispatcher(store, channel, max_workers=1))

        report = notifier.handle(order_created("ord-100", multi_farmer_order))

        # Every farmer was attempted
        assert sorted(store.lookups) == ["user-f01", "user-f02", "user-f03"]
        assert report.result_for("user-f01").outcome == Outcome.LOOKUP_FAILED
        assert report.result_for("user-f02").outcome == Outcome.DISPATCH_FAILED
        assert report.result_for("user-f03").outcome == Outcome.SENT
        assert channel.find_message_to(chen_token).success is True

    def test_items_sold_by_weight_still_notify(self, notifier, channel: MockPushChannel, amara_token, ben_token):
        """Test that fractional or null quantities don't invalidate the order."""
        report = notifier.handle(order_created("ord-105", {
            "items": [
                {"farmerId": "user-f01", "productName": "Potatoes", "quantity": 1.5},
                {"farmerId": "user-f02", "quantity": None},
            ],
        }))

        assert report.sent_count == 2
        assert channel.find_message_to(amara_token) is not None
        assert channel.find_message_to(ben_token) is not None

    def test_invalid_snapshot_raises(self, notifier):
        with pytest.raises(InvalidEventError):
            notifier.handle(order_created("ord-104", {"items": "oops"}))

    def test_report_carries_event_id(self, notifier, multi_farmer_order):
        event = order_created("ord-100", multi_farmer_order)

        report = notifier.handle(event)

        assert report.event_id == event.event_id
        assert report.order_id == "ord-100"
