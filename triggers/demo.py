"""
Demonstration scripts for the order notifiers.

These functions run the ordering flow against the JSON fixtures and a mock
push channel, so every notification shows up in the log.
"""

import logging

from marketplace.channels import MockPushChannel
from marketplace.data_store import DataStore
from marketplace.settings import get_settings
from triggers.change_feed import reset_change_feed
from triggers.notification_service import OrderNotificationService
from triggers.services.ordering import OrderingService

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)


def _setup():
    change_feed = reset_change_feed()
    data_store = DataStore()
    channel = MockPushChannel()

    notification_service = OrderNotificationService(
        change_feed=change_feed,
        user_store=data_store,
        channel=channel,
    )
    ordering_service = OrderingService(change_feed=change_feed, data_store=data_store)
    notification_service.start()
    return notification_service, ordering_service, channel


def run_order_placed_demo():
    """
    A consumer buys from four farmers, two items from the same farmer.

    Expected: Amara, Ben and Chen each get one push; Dora has no device
    token and is skipped.
    """
    print("\n" + "=" * 70)
    print("DEMO: New Order Received (farmers)")
    print("=" * 70 + "\n")

    notification_service, ordering_service, channel = _setup()

    order = ordering_service.place_order(
        "user-c01",
        [
            {"farmerId": "user-f01", "productId": "prod-tomato", "productName": "Heirloom Tomatoes"},
            {"farmerId": "user-f02", "productId": "prod-eggs", "productName": "Free-range Eggs"},
            {"farmerId": "user-f01", "productId": "prod-basil", "productName": "Basil Bunch"},
            {"farmerId": "user-f04", "productId": "prod-kale", "productName": "Curly Kale"},
            {"farmerId": "user-f03", "productId": "prod-honey", "productName": "Wildflower Honey"},
        ],
        order_id="ord-demo-1",
    )

    print("\nNotifications sent:")
    for msg in channel.sent_messages:
        print(f"  {msg}")

    print("\nPer-recipient results:")
    for report in notification_service.reports.values():
        for result in report.results:
            print(f"  {result.user_id}: {result.outcome.value}")

    notification_service.stop()
    return order


def run_status_change_demo():
    """
    An order moves pending -> shipped, then is written again unchanged.

    Expected: one push to the consumer for the change, nothing for the
    second write.
    """
    print("\n" + "=" * 70)
    print("DEMO: Order Status Updated (consumer)")
    print("=" * 70 + "\n")

    notification_service, ordering_service, channel = _setup()

    ordering_service.update_status("ord-001", "shipped")
    ordering_service.update_status("ord-001", "shipped")

    print("\nNotifications sent:")
    for msg in channel.sent_messages:
        print(f"  {msg}")

    print("\nWrites to ord-001:")
    for event in notification_service.change_feed.get_event_log("ord-001"):
        report = notification_service.get_report(event.event_id)
        sent = report.sent_count if report else 0
        print(f"  {event.snapshot('before').get('status')} -> {event.snapshot('after').get('status')}: {sent} sent")

    notification_service.stop()


if __name__ == "__main__":
    run_order_placed_demo()
    run_status_change_demo()
