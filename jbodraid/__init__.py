"""Linear device over a networked JBOD block store, with a block cache and a workload runner."""

__version__ = "0.1.0"
__all__ = ["cache", "jbod", "mdadm", "net", "tester", "util"]