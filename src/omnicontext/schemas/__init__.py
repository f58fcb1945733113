"""Persistence schemas for the SQL and Mongo drivers."""
