"""Core data model, exceptions, strategy interface and decision engine."""
