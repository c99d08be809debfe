"""HTTP surface of tbwmon."""
