"""Pure domain layer: values, DTOs, clock and reconciliation rules."""
