from itertools import combinations

from storeadmin.services.selection import selection_state, toggle_category

CATEGORY = {1, 2, 3, 4, 5}


def test_selection_state_counts_only_category_members():
    state = selection_state(CATEGORY, {1, 2, 99})
    assert state.selected == 2
    assert state.total == 5
    assert state.all_selected is False
    assert state.partial is True


def test_selection_state_all_selected():
    state = selection_state(CATEGORY, CATEGORY | {42})
    assert state == (5, 5, True)
    assert not state.partial


def test_empty_category_is_never_all_selected():
    state = selection_state(set(), {1, 2})
    assert state.total == 0
    assert state.all_selected is False
    assert toggle_category(set(), {1, 2}) == {1, 2}


def test_partial_selection_toggles_to_all():
    # 5 permissions, 2 selected: the button completes the category instead of clearing it
    result = toggle_category(CATEGORY, {1, 2})
    assert result == CATEGORY
    assert selection_state(CATEGORY, result).selected == 5


def test_full_selection_toggles_to_none_and_keeps_other_ids():
    result = toggle_category(CATEGORY, CATEGORY | {10, 11})
    assert result == {10, 11}


def test_double_toggle_from_full_restores_start():
    start = CATEGORY | {7}
    assert toggle_category(CATEGORY, toggle_category(CATEGORY, start)) == start


def test_double_toggle_from_empty_restores_start():
    start = {7}
    once = toggle_category(CATEGORY, start)
    assert once == CATEGORY | {7}
    assert toggle_category(CATEGORY, once) == start


def test_double_toggle_from_partial_clears_category():
    start = {1, 7}
    twice = toggle_category(CATEGORY, toggle_category(CATEGORY, start))
    assert twice == {7}
    assert twice != start


def test_toggle_flips_all_selected_for_every_subset():
    ids = sorted(CATEGORY)
    for size in range(len(ids) + 1):
        for subset in combinations(ids, size):
            before = selection_state(CATEGORY, set(subset))
            after = selection_state(CATEGORY, toggle_category(CATEGORY, set(subset)))
            if before.partial:
                assert after.all_selected is True
            else:
                assert after.all_selected is (not before.all_selected)


def test_toggle_does_not_mutate_input():
    selected = {1, 2}
    toggle_category(CATEGORY, selected)
    assert selected == {1, 2}
