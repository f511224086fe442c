from fantasy_league.services.transfers import count_transfers

STARTERS = ["m1", "m2", "m3", "m4", "f1", "f2"]


def test_two_swaps_count_two():
    changed = ["m5", "m6", "m3", "m4", "f1", "f2"]
    assert count_transfers(STARTERS, "f3", changed, "f3") == 2


def test_bench_removal_counts_one():
    assert count_transfers(STARTERS, "f3", STARTERS, None) == 1


def test_bench_swap_counts_one():
    assert count_transfers(STARTERS, "f3", STARTERS, "f4") == 1


def test_moving_riders_between_slots_is_free():
    reordered = ["m4", "m3", "m2", "m1", "f2", "f1"]
    assert count_transfers(STARTERS, "f3", reordered, "f3") == 0


def test_starter_to_bench_move_is_free():
    starters = ["m1", "m2", "m3", "m4", "f1", "f3"]
    assert count_transfers(STARTERS, "f3", starters, "f2") == 0


def test_empty_previous_roster_counts_every_addition():
    assert count_transfers([], None, STARTERS, "f3") == 7
