"""Stake and lending-pool cost calculator.

A player either stakes their own STX or borrows the stake from the
lending pool. Borrowing locks collateral worth 150% of the stake and
costs 5% interest, repaid out of the pot on a win.

Every function here is pure: the quote is rebuilt from its inputs on
every call and nothing is cached.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from loguru import logger

from .units import Amount, as_decimal, format_stx, to_micro, to_stx

BASIS_POINTS = 10_000


@dataclass(frozen=True)
class LendingTerms:
    """Lending pool parameters, in basis points."""
    collateral_ratio_bps: int = 15_000
    interest_rate_bps: int = 500

    @property
    def collateral_percent(self) -> str:
        return f"{Decimal(self.collateral_ratio_bps) / 100:g}%"

    @property
    def interest_percent(self) -> str:
        return f"{Decimal(self.interest_rate_bps) / 100:g}%"

    def collateral_for(self, stake_micro: int) -> int:
        return stake_micro * self.collateral_ratio_bps // BASIS_POINTS

    def interest_for(self, stake_micro: int) -> int:
        return stake_micro * self.interest_rate_bps // BASIS_POINTS


DEFAULT_TERMS = LendingTerms()


@dataclass(frozen=True)
class WagerInputs:
    """Snapshot of everything a quote depends on."""
    stake: Decimal
    use_lending: bool
    balance_micro: int


@dataclass(frozen=True)
class WagerQuote:
    """Cost of a stake, in microSTX."""
    stake_micro: int
    collateral_micro: int
    interest_micro: int
    can_afford: bool
    use_lending: bool = False

    @property
    def required_micro(self) -> int:
        """Amount the balance has to cover: collateral when borrowing, else the stake."""
        return self.collateral_micro if self.use_lending else self.stake_micro


def quote(stake: Amount, use_lending: bool, balance_micro: int,
          terms: LendingTerms = DEFAULT_TERMS) -> WagerQuote:
    """Quote the cost of staking ``stake`` STX.

    Args:
        stake: Stake in STX, already validated as non-negative
        use_lending: Borrow the stake from the lending pool
        balance_micro: Player balance in microSTX
        terms: Lending pool parameters

    Returns:
        The quote. A zero stake costs nothing and is always affordable.
    """
    stake_micro = to_micro(stake)

    if stake_micro == 0:
        result = WagerQuote(0, 0, 0, True, use_lending)
    elif use_lending:
        collateral = terms.collateral_for(stake_micro)
        result = WagerQuote(
            stake_micro=stake_micro,
            collateral_micro=collateral,
            interest_micro=terms.interest_for(stake_micro),
            can_afford=balance_micro >= collateral,
            use_lending=True,
        )
    else:
        result = WagerQuote(
            stake_micro=stake_micro,
            collateral_micro=0,
            interest_micro=0,
            can_afford=balance_micro >= stake_micro,
            use_lending=False,
        )

    logger.debug(f"Quote for {stake} STX (lending={use_lending}, balance={balance_micro}): {result}")
    return result


def quote_inputs(inputs: WagerInputs, terms: LendingTerms = DEFAULT_TERMS) -> WagerQuote:
    """Quote from a snapshot."""
    return quote(inputs.stake, inputs.use_lending, inputs.balance_micro, terms)


def net_on_win(stake: Amount, interest_micro: int) -> Decimal:
    """STX gained on a win, after repaying interest. Interest is zero without a loan."""
    return as_decimal(stake) - to_stx(interest_micro)


def loss_amount(stake: Amount, collateral_micro: int, use_lending: bool) -> Decimal:
    """STX lost on a loss.

    With a loan this is the full collateral, even though part of it would
    repay the loan. It is the figure the create-game page shows, not the
    contract's settlement amount.
    """
    if use_lending:
        return to_stx(collateral_micro)
    return as_decimal(stake)


def max_stake(balance_micro: int, use_lending: bool = False,
              terms: LendingTerms = DEFAULT_TERMS) -> Decimal:
    """Largest stake the balance can cover.

    Without a loan that is the whole balance. With a loan it is the
    largest stake whose (floored) collateral still fits the balance.
    """
    if balance_micro <= 0:
        return Decimal(0)
    if not use_lending:
        return to_stx(balance_micro)
    stake_micro = ((balance_micro + 1) * BASIS_POINTS - 1) // terms.collateral_ratio_bps
    return to_stx(stake_micro)


@dataclass
class CostBreakdown:
    """Labelled lines of the cost panel shown next to the bet."""
    lines: List[Tuple[str, str]] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    warning: Optional[str] = None

    def render(self) -> List[str]:
        width = max((len(label) for label, _ in self.lines), default=0) + 2
        out = [f"{label + ':':<{width}}{value}" for label, value in self.lines]
        out.extend(f"  ({note})" for note in self.notes)
        if self.warning:
            out.append(f"Insufficient balance! {self.warning}")
        return out


def cost_breakdown(wager: WagerQuote, terms: LendingTerms = DEFAULT_TERMS) -> CostBreakdown:
    """Build the cost panel for a quote. Empty for a zero stake."""
    breakdown = CostBreakdown()
    if wager.stake_micro == 0:
        return breakdown

    stake = to_stx(wager.stake_micro)
    stake_text = format_stx(wager.stake_micro)

    if wager.use_lending:
        win = to_micro(net_on_win(stake, wager.interest_micro))
        loss = to_micro(loss_amount(stake, wager.collateral_micro, True))
        breakdown.lines = [
            ("Stake (Borrowed)", f"{stake_text} STX"),
            (f"Collateral ({terms.collateral_percent})", f"{format_stx(wager.collateral_micro)} STX"),
            (f"Interest ({terms.interest_percent})", f"{format_stx(wager.interest_micro)} STX"),
            ("If You Win", f"+{format_stx(win)} STX"),
            ("If You Lose", f"-{format_stx(loss)} STX"),
        ]
        breakdown.notes = [
            "Win pot, repay loan + interest, get collateral back",
            "Lose collateral if you don't repay the loan",
        ]
    else:
        breakdown.lines = [
            ("Your Stake", f"{stake_text} STX"),
            ("If You Win", f"+{stake_text} STX"),
            ("If You Lose", f"-{stake_text} STX"),
        ]

    if not wager.can_afford:
        if wager.use_lending:
            breakdown.warning = f"Need {format_stx(wager.required_micro)} STX for collateral"
        else:
            breakdown.warning = f"Need {stake_text} STX"
    return breakdown
