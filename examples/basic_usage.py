from foreachkit import Step, for_each, for_each_with_context, setup_logging, sparse


def main() -> None:
    setup_logging()

    print("▶ for_each over a list (reversed)")
    for_each(
        ["alpha", "beta", "gamma"],
        lambda value, index, items: print(f"  [{index}] {value}"),
        reverse=True,
    )

    print("\n▶ for_each over a mapping")
    prices = {"AAPL": 189.5, "MSFT": 411.2, "NVDA": 120.9}
    for_each(prices, lambda price, ticker, _: print(f"  {ticker}: {price:.2f}"))

    print("\n▶ holes are skipped")
    for_each(sparse(5, {1: "b", 3: "d"}), lambda value, index, _: print(f"  [{index}] {value}"))

    print("\n▶ stop early with Step.BREAK")

    def until_negative(value, index, context):
        if value < 0:
            print(f"  negative value at position {context.index}, stopping")
            return Step.BREAK
        print(f"  {value} ({context.index + 1}/{context.total})")

    for_each_with_context([3, 1, -4, 1, 5], until_negative)


if __name__ == "__main__":
    main()
