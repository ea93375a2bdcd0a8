"""HTTP surface for frontdesk."""
