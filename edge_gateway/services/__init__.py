"""Transport, task handle and the edge gateway client."""
