"""Video reverser service package."""
