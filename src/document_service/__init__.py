"""Document Service: access-controlled, versioned document repository."""

__version__ = "1.0.0"
