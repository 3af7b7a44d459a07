"""Core — models, configuration, services and the installation engine."""
