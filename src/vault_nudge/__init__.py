"""Telegram reminders for deadlines written in markdown notes."""
