import asyncio

from foreachkit import ChunkedOptions, for_each_chunked, for_each_chunked_async, setup_logging


def index_row(row: dict, index: int, rows: list) -> None:
    if row["amount"] < 0:
        raise ValueError(f"negative amount in row {index}")


async def upload(row: dict, index: int, rows: list) -> None:
    await asyncio.sleep(0.01)


async def main() -> None:
    setup_logging()
    rows = [{"id": i, "amount": (i % 7) - 1} for i in range(25)]

    print("▶ Synchronous windows of 10")
    for_each_chunked(
        rows,
        index_row,
        chunk_size=10,
        on_chunk_complete=lambda window, ok: print(f"  window {window}: {ok} rows indexed"),
    )

    print("\n▶ Async windows of 10, 5 uploads at a time, 100ms pause between windows")
    options = ChunkedOptions(
        chunk_size=10,
        concurrency=5,
        delay_between_chunks=100,
        on_chunk_complete=lambda window, ok: print(f"  window {window}: {ok} rows uploaded"),
    )
    await for_each_chunked_async(rows, upload, options)


if __name__ == "__main__":
    asyncio.run(main())
