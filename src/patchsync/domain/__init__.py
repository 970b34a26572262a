"""Domain layer: patch catalog, naming, reconciliation and the repository driver."""
