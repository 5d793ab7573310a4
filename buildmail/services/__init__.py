"""Services: version resolution, changelog extraction, formatting, delivery."""
