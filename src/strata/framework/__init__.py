"""Framework-level utilities shared by every strata component."""
