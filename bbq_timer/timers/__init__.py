"""Countdown timers and the orchestrator that alerts when they run out."""
