"""Position sizing and the single-lot capital/position ledger."""
