"""Directory core: typed records, query engine, facets and sponsor slots."""
