"""Secret handling and cookie signing."""
