"""Rate schedule configuration loading."""
