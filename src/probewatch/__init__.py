"""probewatch: health-monitoring daemon running scheduled DNS, TCP and HTTP probes."""

__version__ = "0.1.0"
