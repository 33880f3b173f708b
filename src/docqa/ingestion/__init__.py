"""
Ingestion — PDF extraction, chunking, and embedding.

This module turns uploaded PDF files into ordered, overlapping chunks
and the vectors that represent them.
"""
