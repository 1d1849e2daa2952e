"""Domain layer: account model, ports and reconciliation strategies."""
