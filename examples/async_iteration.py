import asyncio
import random

from foreachkit import ForEachTimeoutError, for_each_async, for_each_parallel, setup_logging


async def fetch(url: str, index: int, urls: list) -> None:
    delay = random.uniform(0.05, 0.2)
    await asyncio.sleep(delay)
    print(f"  fetched {url} in {delay * 1000:.0f}ms")


async def main() -> None:
    setup_logging()
    urls = [f"https://example.com/page/{i}" for i in range(8)]

    print("▶ Sequential")
    await for_each_async(urls[:3], fetch)

    print("\n▶ Parallel, 3 at a time, admitted in order")
    await for_each_parallel(urls, fetch, concurrency=3, preserve_order=True)

    print("\n▶ Timeout")
    try:
        await for_each_parallel(urls, fetch, concurrency=4, timeout=100)
    except ForEachTimeoutError as error:
        print(f"  {error} (context={error.details['context']})")


if __name__ == "__main__":
    asyncio.run(main())
