"""Viva core — config, logging, metrics, errors."""
