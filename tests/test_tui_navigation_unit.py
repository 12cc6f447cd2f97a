from core.board.interface.tui_navigation import clamp_index, move_index, window_bounds


def test_clamp_and_move_stay_in_range():
    assert clamp_index(5, 0) == 0
    assert clamp_index(-2, 4) == 0
    assert move_index(2, 10, 4) == 3
    assert move_index(1, -10, 4) == 0


def test_window_keeps_selection_visible_at_every_position():
    total, height = 31, 7
    for selected in range(total):
        start, end = window_bounds(selected, total, height)
        assert start <= selected < end
        assert end - start == height
        assert 0 <= start and end <= total


def test_short_lists_are_not_windowed():
    assert window_bounds(3, 5, 10) == (0, 5)
    assert window_bounds(0, 0, 10) == (0, 0)
