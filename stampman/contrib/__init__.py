"""Optional stampman add-ons."""
