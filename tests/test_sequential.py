"""
Unit tests for the synchronous engines.

Covers:
- for_each ordering, reverse iteration and hole skipping
- break_on_error / break_on_return policies
- this_arg binding
- for_each_with_context control values and context metadata
"""

from __future__ import annotations

from collections import ChainMap

import pytest

from foreachkit import (
    MISSING,
    ErrorCode,
    ForEachOptions,
    IterationError,
    Step,
    ValidationError,
    for_each,
    for_each_with_context,
    sparse,
)


class TestForEach:
    """Tests for for_each."""

    def test_visits_in_order(self) -> None:
        """Test callback receives value, index and the target in index order."""
        items = [10, 20, 30]
        seen = []

        for_each(items, lambda value, index, target: seen.append((value, index, target)))

        assert seen == [(10, 0, items), (20, 1, items), (30, 2, items)]

    def test_reverse_keeps_original_indices(self) -> None:
        """Test reverse order reports indices of the original sequence."""
        items = ["a", "b", "c"]
        seen = []

        for_each(items, lambda value, index, target: seen.append((value, index)), reverse=True)

        assert seen == [("c", 2), ("b", 1), ("a", 0)]
        assert items == ["a", "b", "c"]

    def test_skips_holes(self) -> None:
        """Test holes in a sparse list are never visited."""
        seen = []

        for_each(sparse(5, {0: "x", 3: "y"}), lambda value, index, target: seen.append(index))

        assert seen == [0, 3]

    def test_none_is_a_value(self) -> None:
        """Test None elements are visited, unlike holes."""
        seen = []

        for_each([None, MISSING, None], lambda value, index, target: seen.append(index))

        assert seen == [0, 2]

    def test_empty_target(self) -> None:
        """Test empty sequences and mappings never call the callback."""
        calls = []

        for_each([], lambda *args: calls.append(args))
        for_each({}, lambda *args: calls.append(args))

        assert calls == []

    def test_mapping_keys(self) -> None:
        """Test mappings pass keys in insertion order."""
        seen = []

        for_each({"a": 1, "b": 2}, lambda value, key, target: seen.append((key, value)))

        assert seen == [("a", 1), ("b", 2)]

    def test_chain_map_own_keys_only(self) -> None:
        """Test only the first map of a ChainMap is iterated."""
        target = ChainMap({"own": 1}, {"inherited": 2})
        seen = []

        for_each(target, lambda value, key, t: seen.append(key))

        assert seen == ["own"]

    def test_errors_swallowed_by_default(self) -> None:
        """Test failures are skipped and iteration continues."""
        seen = []

        def callback(value, index, target):
            if value == 2:
                raise RuntimeError("boom")
            seen.append(value)

        for_each([1, 2, 3], callback)

        assert seen == [1, 3]

    def test_break_on_error(self) -> None:
        """Test the first failure stops iteration with an IterationError."""
        seen = []

        def callback(value, index, target):
            seen.append(value)
            if value == 2:
                raise RuntimeError("boom")

        with pytest.raises(IterationError) as excinfo:
            for_each([1, 2, 3], callback, break_on_error=True)

        assert seen == [1, 2]
        error = excinfo.value
        assert error.code is ErrorCode.ITERATION_ERROR
        assert error.details["index"] == 1
        assert isinstance(error.error, RuntimeError)
        assert error.__cause__ is error.error
        assert "index 1" in str(error)

    def test_break_on_error_mapping_reports_key(self) -> None:
        """Test mapping failures report the key."""

        def callback(value, key, target):
            raise KeyError(key)

        with pytest.raises(IterationError) as excinfo:
            for_each({"k": 1}, callback, break_on_error=True)

        assert excinfo.value.details["key"] == "k"

    def test_break_on_return(self) -> None:
        """Test a non-None return stops iteration after that element."""
        seen = []

        def callback(value, index, target):
            seen.append(value)
            return value if value == 2 else None

        for_each([1, 2, 3, 4], callback, break_on_return=True)

        assert seen == [1, 2]

    def test_return_ignored_without_flag(self) -> None:
        """Test return values are ignored unless break_on_return is set."""
        seen = []

        def callback(value, index, target):
            seen.append(value)
            return True

        for_each([1, 2, 3], callback)

        assert seen == [1, 2, 3]

    def test_this_arg_binding(self) -> None:
        """Test this_arg is passed as the callback's leading argument."""

        class Collector:
            def __init__(self) -> None:
                self.items = []

        def collect(self, value, index, target):
            self.items.append(value)

        collector = Collector()
        for_each([1, 2], collect, this_arg=collector)

        assert collector.items == [1, 2]

    def test_options_record_and_mapping(self) -> None:
        """Test options can be a record or a plain mapping."""
        seen = []

        for_each([1, 2], lambda v, i, t: seen.append(v), ForEachOptions(reverse=True))
        for_each([1, 2], lambda v, i, t: seen.append(v), {"reverse": True})

        assert seen == [2, 1, 2, 1]


class TestForEachValidation:
    """Tests for for_each preconditions."""

    @pytest.mark.parametrize("target", [None, 42, "text", b"bytes", object()])
    def test_invalid_target(self, target) -> None:
        """Test non-collections are rejected before any callback runs."""
        calls = []

        with pytest.raises(ValidationError) as excinfo:
            for_each(target, lambda *args: calls.append(args))

        assert excinfo.value.code is ErrorCode.INVALID_TARGET
        assert calls == []

    def test_invalid_callback(self) -> None:
        """Test a non-callable callback is rejected."""
        with pytest.raises(ValidationError) as excinfo:
            for_each([1], "not callable")

        assert excinfo.value.code is ErrorCode.INVALID_CALLBACK

    def test_unknown_option(self) -> None:
        """Test unknown option names are rejected."""
        with pytest.raises(ValidationError) as excinfo:
            for_each([1], lambda *args: None, {"revrse": True})

        assert excinfo.value.code is ErrorCode.INVALID_OPTIONS
        assert excinfo.value.details["field"] == "revrse"

    def test_non_bool_flag(self) -> None:
        """Test boolean flags must be booleans."""
        with pytest.raises(ValidationError):
            for_each([1], lambda *args: None, break_on_error="yes")


class TestForEachWithContext:
    """Tests for for_each_with_context."""

    def test_context_metadata(self) -> None:
        """Test context reports ordinal, total and first/last flags."""
        contexts = []

        for_each_with_context(["a", "b", "c"], lambda v, i, ctx: contexts.append(ctx))

        assert [ctx.index for ctx in contexts] == [0, 1, 2]
        assert all(ctx.total == 3 for ctx in contexts)
        assert [ctx.is_first for ctx in contexts] == [True, False, False]
        assert [ctx.is_last for ctx in contexts] == [False, False, True]

    def test_reverse_context_follows_processing_order(self) -> None:
        """Test context.index counts in processing order when reversed."""
        seen = []

        for_each_with_context(
            [1, 2, 3], lambda v, i, ctx: seen.append((i, ctx.index, ctx.is_first)), reverse=True
        )

        assert seen == [(2, 0, True), (1, 1, False), (0, 2, False)]

    def test_break_step(self) -> None:
        """Test returning Step.BREAK stops iteration."""
        seen = []

        def callback(value, index, ctx):
            seen.append(value)
            if value == 2:
                return Step.BREAK

        for_each_with_context([1, 2, 3], callback)

        assert seen == [1, 2]

    def test_skip_step_continues(self) -> None:
        """Test returning Step.SKIP moves on to the next element."""
        seen = []

        def callback(value, index, ctx):
            seen.append(value)
            return Step.SKIP

        for_each_with_context([1, 2, 3], callback)

        assert seen == [1, 2, 3]

    def test_mapping_context_key(self) -> None:
        """Test mapping contexts carry the key."""
        keys = []

        for_each_with_context({"x": 1, "y": 2}, lambda v, k, ctx: keys.append(ctx.key))

        assert keys == ["x", "y"]

    def test_break_on_error(self) -> None:
        """Test context callbacks follow the same error policy."""

        def callback(value, index, ctx):
            raise ValueError("bad")

        with pytest.raises(IterationError):
            for_each_with_context([1], callback, break_on_error=True)
