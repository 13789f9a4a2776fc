"""Email relay chain reconstruction and ESP detection."""
