"""Wager calculation, wallet and chain access."""
