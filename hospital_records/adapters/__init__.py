"""Adapters layer for Hospital-Records.

This module contains the file adapters: the record stores that implement the
RecordStorePort, the CSV mirror and log writers, and the patient reports.
"""
