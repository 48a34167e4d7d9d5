"""FIR equaliser, byte FIFO, echo-canceller reference timing, domain-map JSON and service-registry messages."""

__version__ = "0.1.0"

__all__ = [
    "fir",
    "fifo",
    "hwconfig",
    "aec_timing",
    "aec",
    "pdjson",
    "servreg",
]