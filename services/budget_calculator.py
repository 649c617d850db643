"""
Calcul de l'état d'un budget (fonction pure, aucune E/S)
"""
from typing import Optional

from models.budget import Budget, BudgetSnapshot
from utils.money import clamp_cents

APPROACHING_RATIO_DEFAULT = 0.8


def compute_carry_in_cents(
    budget: Budget,
    previous_budget: Optional[Budget] = None,
    previous_actual_cents: Optional[int] = None,
) -> int:
    """
    Reliquat reporté du mois précédent : seule la part non dépensée est reportée,
    un dépassement ne crée jamais de report négatif.
    """
    if not budget.carry_over_prev or previous_budget is None:
        return 0
    leftover = previous_budget.limit_cents - (previous_actual_cents or 0)
    return clamp_cents(leftover, minimum=0)


def resolve_status(
    base_limit_cents: int,
    effective_limit_cents: int,
    actual_cents: int,
    approaching_ratio: float = APPROACHING_RATIO_DEFAULT,
) -> str:
    if effective_limit_cents == 0:
        return "over" if actual_cents > 0 else "ok"
    if actual_cents >= effective_limit_cents:
        return "over"
    # Le seuil "approaching" se mesure sur la limite de base, pas sur la limite gonflée par le report
    if base_limit_cents == 0:
        return "ok"
    if actual_cents / base_limit_cents >= approaching_ratio:
        return "approaching"
    return "ok"


def calculate_budget_snapshot(
    budget: Budget,
    actual_cents: int,
    previous_budget: Optional[Budget] = None,
    previous_actual_cents: Optional[int] = None,
    approaching_ratio: float = APPROACHING_RATIO_DEFAULT,
) -> BudgetSnapshot:
    carry_in_cents = compute_carry_in_cents(budget, previous_budget, previous_actual_cents)
    effective_limit = budget.limit_cents + carry_in_cents

    return BudgetSnapshot(
        category_id=budget.category_id,
        month=budget.month,
        limit_cents=budget.limit_cents,
        actual_cents=actual_cents,
        carry_in_cents=carry_in_cents,
        available_cents=effective_limit - actual_cents,
        status=resolve_status(budget.limit_cents, effective_limit, actual_cents, approaching_ratio),
    )
