"""REST API for netcapture."""
