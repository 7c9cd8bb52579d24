"""Persistence infrastructure: engine setup and SQLModel repositories."""
