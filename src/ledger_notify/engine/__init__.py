"""Notification engine — models, repositories and the engine client."""
