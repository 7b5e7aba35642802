"""Services that talk to the appointment API."""
