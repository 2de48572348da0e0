#!/usr/bin/env python3
"""
Error Reporting - Banshee Demo Application

Run modes:
  python main.py                                   # Demo against an in-process collector
  python main.py --endpoint https://host/events    # Deliver to a real collector
  python main.py --stress --count 500              # Stress test batching
  python main.py --flaky 0.3                       # Collector rejects ~30% of posts
"""

import argparse
import json
import logging
import random
import sys
import threading
import time

import httpx

from banshee.core.client import Client
from banshee.core.codec import decode_and_decompress
from banshee.core.config import ClientConfig
from banshee.core.errors import BansheeError
from banshee.hooks import BansheeHandler
from banshee.transport.http import HttpxPoster

logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)


class LocalCollector:
    """Collects envelopes in memory through an httpx.MockTransport."""

    def __init__(self, failure_rate: float = 0.0):
        self.failure_rate = failure_rate
        self.received: list[dict] = []
        self.rejected = 0
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if random.random() < self.failure_rate:
            with self._lock:
                self.rejected += 1
            return httpx.Response(503)
        envelope = json.loads(request.content)
        event = json.loads(decode_and_decompress(envelope["event"]))
        with self._lock:
            self.received.append(event)
        return httpx.Response(202)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class Checkout:
    """Toy service that fails in a few different ways."""

    def __init__(self, stock: dict[str, int]):
        self.stock = stock

    def buy(self, sku: str, quantity: int) -> int:
        if quantity <= 0:
            raise ValueError(f"invalid quantity {quantity}")
        available = self.stock[sku]
        if available < quantity:
            raise RuntimeError(f"only {available} of {sku} left")
        self.stock[sku] = available - quantity
        return self.stock[sku]


def run_demo(client: Client, verbose: bool = True) -> None:
    checkout = Checkout({"sku-1": 3, "sku-2": 0})
    app_log = logging.getLogger("shop.checkout")
    app_log.addHandler(BansheeHandler(client))

    client.event("checkout service started", metadata={"pid": 1234})

    for sku, quantity in [("sku-1", 1), ("sku-2", 1), ("sku-9", 1), ("sku-1", 0), ("sku-1", 1)]:
        try:
            left = checkout.buy(sku, quantity)
            if verbose:
                print(f"  ok    {sku} x{quantity} ({left} left)")
        except KeyError as e:
            client.error(e, metadata={"sku": sku})
            if verbose:
                print(f"  error {sku}: unknown sku")
        except (ValueError, RuntimeError):
            app_log.exception(f"checkout failed for {sku}")
            if verbose:
                print(f"  error {sku}: reported through logging")

    app_log.warning("stock for %s is running low", "sku-1")


def run_stress(client: Client, count: int) -> None:
    for i in range(count):
        level = random.choice(["DEBUG", "INFO", "WARNING", "ERROR"])
        client.record(f"stress event {i}", level=level, metadata={"i": i})


def main():
    parser = argparse.ArgumentParser(description="Banshee Error Reporting Demo")
    parser.add_argument("--endpoint", type=str, help="Deliver to this collector instead of the local one")
    parser.add_argument("--stress", action="store_true", help="Stress test mode")
    parser.add_argument("--count", type=int, default=200, help="Number of events for stress test")
    parser.add_argument("--flaky", type=float, default=0.0, help="Local collector failure rate (0-1)")
    parser.add_argument("--batch", type=int, default=20, help="Max events per batch")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    args = parser.parse_args()

    collector = None
    config = ClientConfig(
        endpoint=args.endpoint or "https://collector.invalid/events",
        license_id="demo-account",
        license_device="demo-device",
        app="checkout",
        version="1.0.0",
        max_queue_size=args.batch,
        flush_interval=0.5,
        max_retries=2,
    )
    if args.endpoint:
        poster = HttpxPoster(config.endpoint, config.timeout)
    else:
        collector = LocalCollector(failure_rate=args.flaky)
        poster = HttpxPoster(config.endpoint, config.timeout, transport=collector.transport())

    client = Client(config, poster=poster, retry_base_delay=0.05, retry_max_delay=0.2, name="demo").start()

    start = time.monotonic()
    try:
        if args.stress:
            run_stress(client, args.count)
        else:
            if not args.quiet:
                print("=" * 60)
                print("BANSHEE ERROR REPORTING DEMO")
                print("=" * 60)
            run_demo(client, verbose=not args.quiet)
    finally:
        try:
            client.shutdown()
        except BansheeError as e:
            print(f"\nSome events were not delivered: {e}")
    elapsed = time.monotonic() - start

    stats = client.get_stats()
    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"  Recorded:  {stats.events_recorded}")
    print(f"  Delivered: {stats.events_delivered}")
    print(f"  Failed:    {stats.events_failed}")
    print(f"  Batches:   {stats.batches_dispatched}")
    print(f"  Time:      {elapsed:.2f}s")

    if collector is not None:
        print(f"  Collector rejections: {collector.rejected}")
        if not args.quiet and not args.stress:
            for event in collector.received:
                print(f"    [{event['level']:<7}] {event['title']}  ({event['context'].get('culprit')})")

    failed = client.failed_events
    if failed:
        print(f"\n  Undelivered: {len(failed)} events")
        for event, error in failed[:3]:
            print(f"    - {event.title}: {str(error)[:50]}")


if __name__ == "__main__":
    main()
