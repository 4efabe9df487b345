"""webgather: crawl sites or harvest search results into structured records."""

__version__ = "0.1.0"
