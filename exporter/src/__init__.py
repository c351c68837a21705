"""
SolaX inverter to Prometheus bridge.

Accepts the inverter's raw TCP status stream, decodes the JSON frames it
carries, and republishes the derived measurements as a Prometheus scrape
endpoint.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-101)

TODO:
- None
"""
