"""HTTP surface for the condition builder used by the strategy editor."""
