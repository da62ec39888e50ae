"""Core domain logic: progress inference, broadcasting, agent pipeline."""
