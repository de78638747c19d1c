"""Tic-tac-toe board and the create-game flow."""
