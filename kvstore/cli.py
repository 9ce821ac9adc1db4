#!/usr/bin/env python3
"""
KV-Store Demo Entry Point

Runs a short scripted session against an in-memory store through the
KeyValue facade and prints the resulting statistics.

Usage:
    python -m kvstore.cli                         # Default settings
    python -m kvstore.cli --namespace app         # Custom namespace
    python -m kvstore.cli --max-keys 5000         # Custom capacity
    python -m kvstore.cli --default-ttl 30000     # Default TTL in ms
    python -m kvstore.cli --debug                 # Enable debug logging

Environment Variables:
    KV_STORE_MAX_KEYS          - Maximum number of keys
    KV_STORE_DEFAULT_TTL       - Default TTL in milliseconds
    KV_STORE_CLEANUP_INTERVAL  - Sweep interval in milliseconds
    KV_STORE_NAMESPACE         - Key namespace
    KV_STORE_DEBUG             - Enable debug mode (true/false)
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .cache.store import MemoryAdapter
from .config.settings import settings
from .errors import CapacityError, ConfigurationError, KeyValueError
from .facade.events import KVEvent
from .facade.keyvalue import KeyValue

logger = logging.getLogger(__name__)

SHORT_TTL_MS = 50


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KV-Store: asynchronous key-value storage demo",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--namespace",
        type=str,
        default=settings.NAMESPACE or "demo",
        help="Namespace prefixed to every key",
    )

    parser.add_argument(
        "--max-keys",
        type=int,
        default=settings.MAX_KEYS,
        help="Maximum number of keys in the store",
    )

    parser.add_argument(
        "--default-ttl",
        type=int,
        default=settings.DEFAULT_TTL,
        help="Default TTL in milliseconds (0 = no expiration)",
    )

    parser.add_argument(
        "--cleanup-interval",
        type=int,
        default=settings.CLEANUP_INTERVAL,
        help="Milliseconds between expiry sweeps (0 = disabled)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


async def run_demo(kv: KeyValue) -> Dict[str, Any]:
    """
    Exercise every facade operation once and return the final statistics.

    Args:
        kv: A facade, normally over a fresh MemoryAdapter

    Returns:
        The adapter statistics after the session (empty if it keeps none)
    """
    expired: List[str] = []
    kv.on("expired", lambda event: expired.append(event.key))
    kv.on("error", _log_error_event)

    await kv.set("user:1", {"name": "Alice", "roles": ["admin"]})
    await kv.set("user:1", {"name": "Alice", "roles": ["admin", "ops"]})
    print(f"user:1        -> {await kv.get('user:1')}")

    await kv.set("blob", bytes([0, 1, 255, 254]))
    blob = await kv.get("blob")
    print(f"blob          -> {list(blob) if blob is not None else None}")

    await kv.set("marker", ":base64:not-binary")
    print(f"marker        -> {await kv.get('marker')!r}")

    await kv.mset([("a", 1), ("b", 2.5), ("c", None)])
    print(f"mget a,b,c,x  -> {await kv.mget(['a', 'b', 'c', 'x'])}")
    print(f"delete_many   -> {await kv.delete_many(['a', 'x'])}")

    await kv.set("session", "short-lived", ttl=SHORT_TTL_MS)
    await asyncio.sleep(SHORT_TTL_MS * 2 / 1000)
    print(f"session       -> {await kv.get('session')} (expired: {expired})")

    try:
        await kv.set("probe", True)
        print(f"probe exists  -> {await kv.exists('probe')}")
    except KeyValueError as exc:
        if not isinstance(exc.__cause__, CapacityError):
            raise
        print("probe         -> rejected, store is full")

    return kv.get_stats() or {}


def _log_error_event(event: KVEvent) -> None:
    logger.warning(f"{event.operation} failed for {event.key or 'batch'}: {event.error}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the demo."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    logger.info("Starting KV-Store demo")
    logger.info(f"  Namespace: {args.namespace}")
    logger.info(f"  Max keys: {args.max_keys}")
    logger.info(f"  Default TTL: {args.default_ttl} ms")
    logger.info(f"  Cleanup interval: {args.cleanup_interval} ms")

    try:
        store = MemoryAdapter(
            default_ttl=args.default_ttl,
            max_keys=args.max_keys,
            cleanup_interval=args.cleanup_interval,
        )
    except ConfigurationError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2
    kv = KeyValue.create(store, namespace=args.namespace, emit_events=True)

    try:
        stats = asyncio.run(run_demo(kv))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        return 130
    except KeyValueError as exc:
        logger.error(f"Demo failed: {exc}")
        return 1
    finally:
        kv.close()
        store.destroy()

    print(json.dumps(stats, indent=2))
    logger.info("Demo complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
