"""Terminal client for the Task Manager API."""
