"""
Cache + mutex demo for redlatch.

Several workers race to build the same report. Only the worker holding the
"daily-report" lock builds it; the others wait for the lock and then read the
cached result.

SETUP REQUIRED:
    REDIS_URL=redis://localhost:6379/0   (in the environment or a .env file)

Run:
    python examples/report_job/main.py
"""

import asyncio

from redlatch import RedisManager
from redlatch.core.logging import set_holder_context, setup_app_logging


async def build_report() -> dict:
    await asyncio.sleep(0.5)
    return {"orders": 1234, "revenue": 98765}


async def worker(worker_id: int, cache, mutex) -> dict:
    set_holder_context(f"worker-{worker_id}")

    async with mutex.hold("daily-report", timeout=10):
        return await cache.get_or_set("report:daily", build_report, ttl=3600)


async def main() -> None:
    setup_app_logging()
    await RedisManager.initialize()

    cache = RedisManager.create_cache(key_prefix="demo:", serialize=True)
    mutex = RedisManager.create_mutex(cache, expire=30)
    try:
        await cache.delete("report:daily")
        reports = await asyncio.gather(*(worker(i, cache, mutex) for i in range(3)))
        print(reports)

        failed = await cache.add_many({"seen:a": 1, "seen:b": 2}, ttl=60)
        print(f"keys not added: {failed or 'none'}")
    finally:
        await RedisManager.cleanup(mutex)


if __name__ == "__main__":
    asyncio.run(main())
