"""Core business logic services for the blog backend."""
