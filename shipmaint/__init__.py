"""Ship maintenance tracking: ships, components, maintenance jobs and notifications."""
