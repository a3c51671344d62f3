"""
tiny-cacher Usage Example

Runs the same scenario against every strategy available in this runtime.

This example shows:
- Configuring namespace, default TTL and verbose mode
- Connecting to Redis, Memcached and SQLite, and setting a file storage directory
- Storing, checking, fetching, incrementing and removing entries
- Invalidating the whole cache
"""

import logging
import tempfile
import time
from pathlib import Path

from tiny_cacher import CacheConnectionError, TinyCacher
from tiny_cacher.config import TinyCacherConfig, get_config

logger = logging.getLogger(__name__)

NAMESPACE = "demo"
TTL = 120
INCREMENT = 4


def prepare(cache: TinyCacher, strategy: str, workdir: Path) -> bool:
    """Open whatever the strategy needs. Returns False if its server is unreachable."""
    try:
        if strategy == "redis":
            cache.connect_to_redis("127.0.0.1", 6379)
        elif strategy == "memcached":
            cache.connect_to_memcached([("127.0.0.1", 11211)])
            if not cache.memcached_connected(probe=True):
                logger.warning("Memcached is not answering on 127.0.0.1:11211, skipping")
                return False
        elif strategy == "sqlite3":
            cache.connect_to_sqlite(str(workdir / "cache.db"))
        elif strategy == "file":
            cache.set_storage_directory(workdir / "cache")
    except CacheConnectionError as e:
        logger.warning("Skipping %s: %s", strategy, e.message)
        return False
    return True


def run_strategy(cache: TinyCacher, strategy: str) -> None:
    cache.set_strategy(strategy)
    start = time.perf_counter()

    logger.info("Pushing some elements into the cache...")
    cache.store_many(
        {
            "cache-entry": "Some data that should be cached for next uses 🍭",
            "foo": "bar",
            "serialised": [1, 2, 3, 5, "a", True],
            "numeric": 10,
        },
        overwrite=True,
    )

    logger.info("Does the element exist? %s", "Yes." if cache.exists("cache-entry") else "No.")
    logger.info("Value: %s", cache.fetch("cache-entry", quiet=True))

    cache.increment("numeric", INCREMENT)
    logger.info("Incremented value now is: %s", cache.fetch("numeric"))

    cache.remove("cache-entry")
    cache.invalidate(all=True)
    logger.info("Cache content cleared.")
    logger.info("Test completed in %.4f seconds.", time.perf_counter() - start)


def configure_logging(config: TinyCacherConfig) -> None:
    """Set up logging from the loaded configuration."""
    logging.basicConfig(
        level=config.log_level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Environment: %s", config.environment.value)


def main() -> None:
    configure_logging(get_config())
    total = time.perf_counter()
    strategies = TinyCacher.get_supported_strategies()
    logger.info("Supported strategies: %s", ", ".join(strategies))

    with tempfile.TemporaryDirectory() as tmp, TinyCacher(namespace=NAMESPACE, default_ttl=TTL, verbose=True) as cache:
        workdir = Path(tmp)
        for strategy in strategies:
            logger.info("=" * 60)
            logger.info('Starting test using "%s" as strategy...', strategy)
            if prepare(cache, strategy, workdir):
                run_strategy(cache, strategy)

    logger.info("All tests completed in %.4f seconds.", time.perf_counter() - total)


if __name__ == "__main__":
    main()
