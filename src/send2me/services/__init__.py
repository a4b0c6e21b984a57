"""Domain services for Send2Me."""
