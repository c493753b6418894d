"""Business logic services for SmartNotes."""
