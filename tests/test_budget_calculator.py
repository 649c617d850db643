import pytest

from models.budget import STATUS_ORDER, Budget
from services.budget_calculator import calculate_budget_snapshot, compute_carry_in_cents, resolve_status

NOW = "2024-03-01T00:00:00.000Z"


def make_budget(month="2024-03", limit_cents=50000, carry_over_prev=False, category_id="groceries"):
    return Budget(
        id=f"{category_id}-{month}",
        month=month,
        category_id=category_id,
        limit_cents=limit_cents,
        carry_over_prev=carry_over_prev,
        created_at=NOW,
        updated_at=NOW,
    )


def test_carry_over_adds_previous_leftover() -> None:
    budget = make_budget(carry_over_prev=True)
    previous = make_budget(month="2024-02", limit_cents=50000)

    snapshot = calculate_budget_snapshot(budget, actual_cents=45000, previous_budget=previous,
                                         previous_actual_cents=30000)

    assert snapshot.carry_in_cents == 20000
    assert snapshot.available_cents == 25000
    assert snapshot.status == "approaching"


def test_overspent_previous_month_gives_no_carry_in() -> None:
    budget = make_budget(carry_over_prev=True)
    previous = make_budget(month="2024-02", limit_cents=50000)

    assert compute_carry_in_cents(budget, previous, previous_actual_cents=70000) == 0


def test_carry_in_zero_when_disabled_or_no_previous_budget() -> None:
    previous = make_budget(month="2024-02")
    assert compute_carry_in_cents(make_budget(carry_over_prev=False), previous, 0) == 0
    assert compute_carry_in_cents(make_budget(carry_over_prev=True), None, None) == 0


def test_missing_previous_actual_counts_as_zero() -> None:
    budget = make_budget(carry_over_prev=True)
    previous = make_budget(month="2024-02", limit_cents=12000)
    assert compute_carry_in_cents(budget, previous) == 12000


def test_status_over_when_actual_reaches_limit() -> None:
    snapshot = calculate_budget_snapshot(make_budget(limit_cents=10000), actual_cents=10000)
    assert snapshot.status == "over"
    assert snapshot.available_cents == 0


def test_zero_limit_budget() -> None:
    assert calculate_budget_snapshot(make_budget(limit_cents=0), actual_cents=0).status == "ok"
    assert calculate_budget_snapshot(make_budget(limit_cents=0), actual_cents=1).status == "over"


def test_zero_base_limit_with_carry_in_is_never_approaching() -> None:
    assert resolve_status(0, 5000, 4900) == "ok"
    assert resolve_status(0, 5000, 5000) == "over"


def test_approaching_ratio_is_measured_on_base_limit() -> None:
    # 40000 / 50000 = 0.8 atteint, alors que la limite effective est 70000
    assert resolve_status(50000, 70000, 40000, approaching_ratio=0.8) == "approaching"
    assert resolve_status(50000, 70000, 39999, approaching_ratio=0.8) == "ok"
    assert resolve_status(50000, 70000, 40000, approaching_ratio=0.9) == "ok"


@pytest.mark.parametrize("previous_actual", [0, 10000, 50000, 80000])
@pytest.mark.parametrize("actual", [0, 25000, 60000, 90000])
def test_snapshot_invariants(actual, previous_actual) -> None:
    budget = make_budget(carry_over_prev=True)
    previous = make_budget(month="2024-02")

    snapshot = calculate_budget_snapshot(budget, actual, previous, previous_actual)

    assert snapshot.carry_in_cents >= 0
    assert snapshot.available_cents == snapshot.limit_cents + snapshot.carry_in_cents - snapshot.actual_cents


def test_status_is_monotonic_in_actual() -> None:
    budget = make_budget(limit_cents=10000, carry_over_prev=True)
    previous = make_budget(month="2024-02", limit_cents=3000)
    ranks = [
        STATUS_ORDER.index(calculate_budget_snapshot(budget, actual, previous, 0).status)
        for actual in range(0, 15000, 250)
    ]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize("actual, previous, expected_available, expected_status", [
    (20000, None, 30000, "ok"),
    (42000, None, 8000, "approaching"),
    (52000, None, -2000, "over"),
    (30000, (60000, 40000), 40000, "ok"),
])
def test_reference_scenarios(actual, previous, expected_available, expected_status) -> None:
    budget = make_budget(limit_cents=50000, carry_over_prev=previous is not None)
    previous_budget = previous_actual = None
    if previous is not None:
        previous_budget = make_budget(month="2024-02", limit_cents=previous[0])
        previous_actual = previous[1]

    snapshot = calculate_budget_snapshot(budget, actual, previous_budget, previous_actual)

    assert snapshot.available_cents == expected_available
    assert snapshot.status == expected_status
