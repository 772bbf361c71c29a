"""Control plane: registry, pose conversion, screen plane, distance response."""
