"""Clock-in/clock-out and mileage client for a field-service crew."""

__version__ = "0.1.0"
