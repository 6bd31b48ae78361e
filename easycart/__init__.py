"""Cart pricing client for the service-booking marketplace."""
