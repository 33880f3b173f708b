"""
Serving — FastAPI application for the upload and question entry points.
"""
