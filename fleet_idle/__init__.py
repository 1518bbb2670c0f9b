"""
Fleet Idle - Idle-Period Detection for Tracked Devices

A fragment of a telemetry ingestion pipeline that turns a stream of raw
device position reports into idle-period events (device stationary with
ignition on) and applies per-device speed correction.
"""

__version__ = "0.1.0"
__author__ = "Fleet Idle Team"
