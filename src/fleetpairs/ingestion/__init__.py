"""Ingestion helpers.

Vendor payloads are normalized here, at the pydantic boundary, so the
matching engine only ever sees :class:`~fleetpairs.models.PositionReport`.
"""
