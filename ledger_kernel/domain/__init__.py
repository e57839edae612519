"""Pure domain layer: value objects, side conventions and clock. Zero I/O."""
