from foreachkit import for_each_generator, for_each_lazy, setup_logging


def main() -> None:
    setup_logging()

    print("▶ Lazy pipeline over a million numbers")
    result = (
        for_each_lazy(range(1_000_000), buffer_size=16)
        .filter(lambda x: x % 3 == 0)
        .map(lambda x: x * x)
        .skip(2)
        .take(5)
        .to_list()
    )
    print(f"  {result}")

    print("\n▶ Mapping pairs")
    for key, value in for_each_lazy({"q1": 1.2, "q2": 0.8, "q3": 1.5}):
        print(f"  {key}: {value}")

    print("\n▶ Generators restart on every call")
    quarters = ["Q1", "Q2", "Q3", "Q4"]
    print(f"  {list(for_each_generator(quarters, reverse=True))}")
    print(f"  {list(for_each_generator(quarters))}")


if __name__ == "__main__":
    main()
