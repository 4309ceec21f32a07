"""
Analytics Backend - HTTP surface for the field audit analytics engine.

This package provides a FastAPI backend that receives task records from the
tracker dashboard and returns filtered analytics snapshots, drill-downs and
export sheets.
"""
