"""Default implementations of the stampman protocols."""
