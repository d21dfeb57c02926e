"""SQLAlchemy persistence adapters for the task store and external directories."""
