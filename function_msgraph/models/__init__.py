"""Data models for the function input and the RunFunction envelope."""
