"""CLI sub-command groups registered by ``homestack.main``."""
