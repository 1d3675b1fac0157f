"""apidesign: compile declarative API designs into OpenAPI documents."""

__version__ = "0.1.0"
