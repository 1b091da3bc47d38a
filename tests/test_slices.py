import pytest

from pigeonrelay.slices import (
    filter_items,
    for_each,
    from_map_keys,
    from_map_values,
    iter_map_n,
    iter_n,
    make_map_keys,
    map_items,
    reduce_items,
    reverse_in_place,
)


def test_for_each_visits_every_item_in_order():
    seen = []
    for_each(["a", "b", "c"], seen.append)
    assert seen == ["a", "b", "c"]


def test_filter_without_filters_returns_input_itself():
    items = [3, 1, 2]
    assert filter_items(items) is items


def test_filter_applies_all_filters():
    result = filter_items(list(range(10)), lambda x: x % 2 == 0, lambda x: x > 4)
    assert result == [6, 8]


def test_filter_stops_at_first_rejecting_filter():
    second_calls = []

    def second(x):
        second_calls.append(x)
        return True

    result = filter_items(["keep", "drop"], lambda x: x == "keep", second)
    assert result == ["keep"]
    assert second_calls == ["keep"]


def test_filter_rejecting_everything_gives_empty_list():
    assert filter_items([1, 2, 3], lambda x: False) == []


def test_from_map_values_and_keys():
    mapping = {"a": 1, "b": 2}
    assert from_map_keys(mapping) == ["a", "b"]
    assert from_map_values(mapping) == [1, 2]


def test_from_map_on_empty_mapping():
    assert from_map_keys({}) == []
    assert from_map_values({}) == []


def test_make_map_keys_later_items_override():
    first = ("a", 1)
    second = ("b", 2)
    third = ("a", 3)
    result = make_map_keys([first, second, third], lambda item: item[0])
    assert result == {"a": third, "b": second}


def test_iter_n_calls_with_each_index():
    result = iter_n(4, lambda i: i)
    assert len(result) == 4
    assert all(value == index for index, value in enumerate(result))


@pytest.mark.parametrize("num", [0, -1])
def test_iter_n_rejects_non_positive(num):
    with pytest.raises(ValueError, match="positive"):
        iter_n(num, lambda i: i)


def test_iter_map_n_builds_mapping():
    result = iter_map_n(3, lambda i: (i, i * i))
    assert set(result) == set(range(3))
    assert all(value == key * key for key, value in result.items())


def test_iter_map_n_rejects_duplicate_keys():
    with pytest.raises(ValueError, match="already calculated"):
        iter_map_n(2, lambda i: ("same", i))


@pytest.mark.parametrize("num", [0, -5])
def test_iter_map_n_rejects_non_positive(num):
    with pytest.raises(ValueError, match="positive"):
        iter_map_n(num, lambda i: (i, i))


def test_map_items_preserves_order_and_length():
    items = ["x", "yy", "zzz"]
    result = map_items(items, str.upper)
    assert result == ["X", "YY", "ZZZ"]


def test_map_items_on_empty():
    assert map_items([], str) == []


def test_map_items_propagates_errors():
    def boom(_):
        raise KeyError("missing")

    with pytest.raises(KeyError):
        map_items([1], boom)


def test_reduce_items_folds_from_the_left():
    assert reduce_items(["a", "b", "c"], lambda acc, v: acc + v, "") == "abc"


def test_reduce_items_on_empty_returns_initial():
    marker = object()
    assert reduce_items([], lambda acc, v: v, marker) is marker


def test_reverse_in_place():
    items = [1, 2, 3, 4]
    original = list(items)
    assert reverse_in_place(items) is None
    assert items == original[::-1]
    reverse_in_place(items)
    assert items == original


def test_reverse_in_place_single_and_empty():
    single = ["only"]
    reverse_in_place(single)
    assert single == ["only"]
    empty = []
    reverse_in_place(empty)
    assert empty == []