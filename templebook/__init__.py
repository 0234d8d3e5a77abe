"""Temple Visit Booking System backend."""
