"""Logging, URL, rate-limit and memory helpers."""
