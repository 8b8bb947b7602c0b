"""Dataset model, request execution, and response dispatch."""
