"""HTTP front door for the trade interceptor."""
