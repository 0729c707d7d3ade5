from types import SimpleNamespace

from app.drip.sequencer import Direction, adjacent, boundary


def _items(*orders: int) -> list[SimpleNamespace]:
    return [SimpleNamespace(order_index=o, name=f"item-{o}") for o in orders]


def test_adjacent_skips_gaps_in_order_index() -> None:
    items = _items(1, 5, 10)
    assert adjacent(items, 1, Direction.NEXT).order_index == 5
    assert adjacent(items, 10, Direction.PREVIOUS).order_index == 5


def test_adjacent_ignores_input_order() -> None:
    items = _items(10, 1, 5)
    assert adjacent(items, 5, Direction.NEXT).order_index == 10
    assert adjacent(items, 5, Direction.PREVIOUS).order_index == 1


def test_adjacent_returns_none_past_the_ends() -> None:
    items = _items(1, 2, 3)
    assert adjacent(items, 3, Direction.NEXT) is None
    assert adjacent(items, 1, Direction.PREVIOUS) is None


def test_next_then_previous_returns_to_start() -> None:
    items = _items(2, 4, 7, 9)
    for item in items[:-1]:
        forward = adjacent(items, item.order_index, Direction.NEXT)
        assert adjacent(items, forward.order_index, Direction.PREVIOUS) is item


def test_boundary_picks_first_going_forward_and_last_going_back() -> None:
    items = _items(3, 1, 2)
    assert boundary(items, Direction.NEXT).order_index == 1
    assert boundary(items, Direction.PREVIOUS).order_index == 3


def test_boundary_of_empty_sequence_is_none() -> None:
    assert boundary([], Direction.NEXT) is None
    assert boundary([], Direction.PREVIOUS) is None
