"""Pennsylvania policy news ingestion: feeds in, relevance-filtered summaries out."""

__version__ = "0.1.0"
