"""Domain layer: mode state machine, report model and construction rules."""
