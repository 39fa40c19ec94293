"""Service layer orchestrating the takeoff workflow."""
