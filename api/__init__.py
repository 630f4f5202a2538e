"""
FastAPI REST API for the Book Recommender.

This module provides:
- Random book recommendations
- Admin catalog management with bearer API keys
- The catalog sync trigger
"""
