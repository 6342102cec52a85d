"""Evohub metering backend."""
