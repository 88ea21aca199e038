"""Core domain logic for the roadmap-dashboard service.

Nothing in this package imports FastAPI or SQLAlchemy sessions; inputs are
plain snapshot records supplied by the adapters layer.
"""
