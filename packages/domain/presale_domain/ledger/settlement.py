"""Settlement token resolution at close."""

from ..schemas.state import SettlementBinding, SettlementBound


def hurdle_met(total_allocated: int, hurdle: int) -> bool:
    """True if the round raised at least the hurdle."""
    return total_allocated >= hurdle


def resolve_settlement_token(
    current: SettlementBinding,
    total_allocated: int,
    hurdle: int,
    contribution_asset: str,
) -> str:
    """Decide which asset investors claim once the round closes.

    The reward token staged by the operator is kept only if the hurdle was
    met. A missed hurdle overrides any staged token, and a round closed with
    nothing staged refunds as well.

    Args:
        current: Binding before close (unbound or operator-staged token)
        total_allocated: Total raised at close
        hurdle: Threshold for success
        contribution_asset: Address of the asset investors contributed

    Returns:
        Address of the settlement token (contribution_asset means refund)
    """
    if not isinstance(current, SettlementBound):
        return contribution_asset
    if not hurdle_met(total_allocated, hurdle):
        return contribution_asset
    return current.token


def is_refund(settlement_token: str, contribution_asset: str) -> bool:
    return settlement_token == contribution_asset
