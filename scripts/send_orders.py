#!/usr/bin/env python3
"""
Publish a batch of random, valid orders to the order topic.

Useful for exercising a running service end to end:

    python scripts/send_orders.py --brokers localhost:9092
"""

import argparse
import asyncio
import random
from datetime import datetime, timezone

from aiokafka import AIOKafkaProducer

from orderstream.core.config import get_settings
from orderstream.core.logging import configure_logging, get_logger
from orderstream.domain.order import Delivery, Item, Order, Payment

logger = get_logger("send_orders")


def generate_random_order() -> Order:
    uid = f"test-{random.randrange(1_000_000)}"
    items = tuple(
        Item(
            chrt_id=random.randint(1, 100_000),
            track_number=f"TRACK-{random.randrange(10_000)}",
            price=random.randint(1, 1_000),
            rid=f"rid-{random.randrange(100_000)}",
            name=f"Product-{index + 1}",
            sale=random.randrange(50),
            size="M",
            total_price=random.randrange(1_000),
            nm_id=random.randrange(10_000),
            brand="BrandX",
            status=202,
        )
        for index in range(random.randint(1, 5))
    )
    return Order(
        order_uid=uid,
        track_number=f"TRACK-{random.randrange(10_000)}",
        entry="WBIL",
        locale="en",
        delivery=Delivery(
            name="John Doe",
            phone="+123456789",
            zip="123456",
            city="Moscow",
            address="Lenina 1",
            region="Moscow",
            email="john@example.com",
        ),
        payment=Payment(
            transaction=uid,
            currency="USD",
            provider="wbpay",
            amount=random.randint(1, 5_000),
            payment_dt=int(datetime.now(timezone.utc).timestamp()),
            delivery_cost=1500,
            goods_total=1000,
        ),
        items=items,
        customer_id="test-customer",
        delivery_service="meest",
        shardkey="9",
        sm_id=99,
        date_created=datetime.now(timezone.utc),
        oof_shard="1",
    )


async def send_orders(brokers: list[str], topic: str, count: int, delay: float) -> int:
    producer = AIOKafkaProducer(bootstrap_servers=brokers)
    await producer.start()
    sent = 0
    try:
        for _ in range(count):
            order = generate_random_order()
            await producer.send_and_wait(
                topic,
                value=order.model_dump_json().encode(),
                key=order.order_uid.encode(),
            )
            sent += 1
            logger.info("Order sent", order_uid=order.order_uid, item_count=len(order.items))
            await asyncio.sleep(delay)
    finally:
        await producer.stop()
    return sent


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Publish random orders to the order topic.")
    parser.add_argument("--brokers", default=settings.kafka_brokers, help="Comma-separated host:port list")
    parser.add_argument("--topic", default=settings.kafka_topic, help="Target topic")
    parser.add_argument("--count", type=int, default=None, help="Number of orders (default: random 5-15)")
    parser.add_argument("--delay", type=float, default=0.3, help="Seconds between messages")
    args = parser.parse_args()

    configure_logging()
    count = args.count if args.count is not None else random.randint(5, 15)
    brokers = [broker.strip() for broker in args.brokers.split(",") if broker.strip()]

    logger.info("Sending orders", count=count, topic=args.topic, brokers=brokers)
    sent = asyncio.run(send_orders(brokers, args.topic, count, args.delay))
    print(f"sent={sent} topic={args.topic}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
