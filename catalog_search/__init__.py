"""Product search, ranking and result caching for the asset catalog."""
