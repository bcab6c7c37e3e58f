"""
Backend: anomaly lifecycle, storage, notification and export collaborators,
plus the replay runner.
"""
