"""Send2Me: anonymous message inbox API."""
